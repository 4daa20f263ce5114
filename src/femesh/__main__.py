"""
Command Line Interface
======================
Runs the mesh revision operations on mesh files.

Usage:
    python -m femesh info mesh.msh
    python -m femesh simplify mesh.msh simplified.vtu --eps 1e-6 --min-dim 3
    python -m femesh collapse mesh.vtu collapsed.vtu --eps 1e-3
    python -m femesh subdivide mesh.msh subdivided.msh
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from femesh.config import DEFAULT_COLLAPSE_EPS, DEFAULT_GRID_RESOLUTION, DEFAULT_MIN_ELEM_DIM, VALID_MIN_ELEM_DIMS
from femesh.editing.mesh_revision import MeshRevision
from femesh.logging_config import setup_logging
from femesh.mesh.io import read_mesh, write_mesh

logger = logging.getLogger("femesh")

COMMANDS = ("info", "collapse", "simplify", "subdivide")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="femesh",
        description="Collapse coincident nodes, simplify or subdivide finite element meshes.",
    )
    parser.add_argument("command", choices=COMMANDS, help="Operation to run.")
    parser.add_argument("input", type=Path, help="Input mesh (.msh or .vtu).")
    parser.add_argument("output", type=Path, nargs="?", help="Output mesh (.msh or .vtu).")
    parser.add_argument(
        "--eps", type=float, default=DEFAULT_COLLAPSE_EPS,
        help=f"Node coincidence tolerance (default: {DEFAULT_COLLAPSE_EPS}).",
    )
    parser.add_argument(
        "--min-dim", type=int, choices=VALID_MIN_ELEM_DIMS, default=DEFAULT_MIN_ELEM_DIM,
        help="Minimum dimension of the elements kept by 'simplify'.",
    )
    parser.add_argument(
        "--grid-resolution", type=int, default=DEFAULT_GRID_RESOLUTION,
        help="Partitions of the proximity grid along its longest axis.",
    )
    parser.add_argument("--name", help="Name of the new mesh (default: output file stem).")
    parser.add_argument(
        "--log-level", default="INFO", choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level.",
    )
    parser.add_argument("--log-file", help="Optional file to write the log to.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "info" and args.output is None:
        parser.error(f"the '{args.command}' command requires an output file")

    # 1. Setup Logging (Console + Optional File)
    setup_logging(level=args.log_level, log_file=args.log_file)

    try:
        # 2. Load the source mesh
        mesh = read_mesh(args.input)
        if args.command == "info":
            print(mesh.summary())
            return 0

        # 3. Run the requested operation
        name = args.name or args.output.stem
        revision = MeshRevision(mesh, grid_resolution=args.grid_resolution)
        if args.command == "collapse":
            new_mesh = revision.collapse_nodes(name, args.eps)
        elif args.command == "simplify":
            new_mesh = revision.simplify_mesh(name, args.eps, args.min_dim)
        else:
            new_mesh = revision.subdivide_mesh(name)

        if new_mesh is None:
            logger.warning("No mesh was produced, nothing written.")
            return 1

        # 4. Save the result
        write_mesh(new_mesh, args.output)
    except (FileNotFoundError, ValueError, IndexError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
