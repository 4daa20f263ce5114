"""Tests for the MeshRevision engine.

Covers:
- Node collapsing without element reduction
- Reduction of degenerate elements of every type
- Subdivision of elements with non-planar faces
- The min_elem_dim filter and empty results
- Per-element failures
"""
import logging

import numpy as np
import pytest

from femesh.editing import MeshRevision
from femesh.mesh import (
    ELEMENT_CLASSES,
    ElementErrorFlag,
    Hex,
    Line,
    Mesh,
    MeshElemType,
    Prism,
    Pyramid,
    Quad,
    Tet,
    Tri,
)

EPS = 1e-6

SQUARE = [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]]
UNIT_TET = [[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]]


def total_content(mesh: Mesh) -> float:
    return sum(element.content for element in mesh.elements)


def types_of(mesh: Mesh) -> list[MeshElemType]:
    return [element.geom_type for element in mesh.elements]


### Test Classes ###


class TestCollapseNodes:
    """Tests for merging nodes without reducing elements."""

    def test_count_collapsible_nodes(self, unit_cube, mesh_builder):
        unit_cube[1] = unit_cube[0]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        assert MeshRevision(mesh).count_collapsible_nodes(EPS) == 1
        assert MeshRevision(mesh).count_collapsible_nodes(0.0) == 0

    def test_collapse_keeps_element_types(self, unit_cube, mesh_builder):
        unit_cube[1] = unit_cube[0]
        mesh = mesh_builder(unit_cube, [(Hex, range(8), 5)])
        result = MeshRevision(mesh).collapse_nodes("collapsed", EPS)

        assert result.name == "collapsed"
        assert result.n_nodes == 7
        assert types_of(result) == [MeshElemType.HEXAHEDRON]
        assert result.elements[0].node_ids == [0, 0, 1, 2, 3, 4, 5, 6]
        assert result.elements[0].value == 5

    def test_collapse_node_indices(self, unit_cube, mesh_builder):
        unit_cube[7] = unit_cube[2]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        np.testing.assert_array_equal(
            MeshRevision(mesh).collapse_node_indices(EPS), [0, 1, 2, 3, 4, 5, 6, 2]
        )


class TestSimplifyIntactElements:
    """Tests for elements that keep all of their nodes."""

    def test_hex_without_coincident_nodes(self, hex_mesh):
        result = MeshRevision(hex_mesh).simplify_mesh("same", 0.5)
        assert result.n_nodes == 8
        assert types_of(result) == [MeshElemType.HEXAHEDRON]
        assert result.elements[0].node_ids == list(range(8))
        assert result.elements[0].value == 1
        np.testing.assert_array_equal(result.coords, hex_mesh.coords)

    def test_zero_tolerance_reproduces_the_mesh(self, mesh_builder):
        coords = [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], [2, 0, 0]]
        mesh = mesh_builder(coords, [(Quad, (0, 1, 2, 3), 1), (Tri, (1, 4, 2), 2)])
        result = MeshRevision(mesh).simplify_mesh("same", 0.0)
        assert [element.node_ids for element in result.elements] == [[0, 1, 2, 3], [1, 4, 2]]
        assert [element.value for element in result.elements] == [1, 2]

    def test_duplicate_interface_nodes_are_merged(self, unit_cube, mesh_builder):
        coords = np.vstack([unit_cube, unit_cube + [1.0, 0.0, 0.0]])
        mesh = mesh_builder(coords, [(Hex, range(8)), (Hex, range(8, 16))])
        result = MeshRevision(mesh).simplify_mesh("merged", EPS)

        assert result.n_nodes == 12
        assert types_of(result) == [MeshElemType.HEXAHEDRON] * 2
        first, second = result.elements
        assert second.nodes[0] is first.nodes[1]
        assert second.nodes[7] is first.nodes[6]

    def test_source_mesh_is_not_modified(self, unit_cube, mesh_builder):
        unit_cube[1] = unit_cube[0]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert [node.uid for node in mesh.nodes] == list(range(8))
        assert mesh.n_elements == 1
        assert isinstance(mesh.elements[0], Hex)
        assert not {id(node) for node in result.nodes} & {id(node) for node in mesh.nodes}


class TestSimplifyHex:
    """Tests for the reduction of degenerate hexahedra."""

    def test_seven_nodes_horizontal_edge(self, unit_cube, mesh_builder):
        unit_cube[1] = unit_cube[0]
        mesh = mesh_builder(unit_cube, [(Hex, range(8), 2)])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert result.n_nodes == 7
        pyramid, prism = result.elements
        assert isinstance(pyramid, Pyramid)
        assert isinstance(prism, Prism)
        assert pyramid.node_ids == [2, 1, 4, 3, 0]
        assert prism.node_ids == [2, 6, 3, 1, 5, 4]
        assert pyramid.content == pytest.approx(1.0 / 3.0)
        assert prism.content == pytest.approx(0.5)
        assert pyramid.validate() == prism.validate() == ElementErrorFlag.NONE
        assert pyramid.value == prism.value == 2

    def test_seven_nodes_vertical_edge(self, unit_cube, mesh_builder):
        unit_cube[4] = unit_cube[0]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        pyramid, prism = result.elements
        assert pyramid.content == pytest.approx(1.0 / 3.0)
        assert prism.content == pytest.approx(0.5)
        assert all(element.validate() == ElementErrorFlag.NONE for element in result.elements)

    def test_six_nodes_face_collapsed_to_line(self, unit_cube, mesh_builder):
        unit_cube[3] = unit_cube[0]
        unit_cube[2] = unit_cube[1]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert result.n_nodes == 6
        assert types_of(result) == [MeshElemType.PRISM]
        prism = result.elements[0]
        assert prism.content == pytest.approx(0.5)
        assert all(element.validate() == ElementErrorFlag.NONE for element in result.elements)

    def test_six_nodes_opposite_edges(self, unit_cube, mesh_builder):
        unit_cube[1] = unit_cube[0]
        unit_cube[7] = unit_cube[6]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert types_of(result) == [MeshElemType.TETRAHEDRON] * 4
        for tet in result.elements:
            assert tet.content == pytest.approx(1.0 / 6.0)
            assert tet.validate() == ElementErrorFlag.NONE
        assert total_content(result) == pytest.approx(2.0 / 3.0)

    @pytest.mark.parametrize("edge", Hex.EDGE_NODES)
    def test_seven_nodes_every_edge(self, unit_cube, mesh_builder, edge):
        i, j = edge
        unit_cube[j] = unit_cube[i]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert types_of(result) == [MeshElemType.PYRAMID, MeshElemType.PRISM]
        assert all(element.validate() == ElementErrorFlag.NONE for element in result.elements)
        assert total_content(result) == pytest.approx(5.0 / 6.0)

    @pytest.mark.parametrize(
        "face, merged",
        [(face, ((1, 0), (3, 2))) for face in Hex.FACE_NODES]
        + [(face, ((3, 0), (2, 1))) for face in Hex.FACE_NODES],
    )
    def test_six_nodes_every_face_collapsed_to_line(self, unit_cube, mesh_builder, face, merged):
        for moved, target in merged:
            unit_cube[face[moved]] = unit_cube[face[target]]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert types_of(result) == [MeshElemType.PRISM]
        assert result.elements[0].validate() == ElementErrorFlag.NONE
        assert result.elements[0].content == pytest.approx(0.5)

    def test_five_nodes_bottom_face_to_point(self, unit_cube, mesh_builder):
        unit_cube[:4] = [0.5, 0.5, 0.0]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert result.n_nodes == 5
        assert types_of(result) == [MeshElemType.TETRAHEDRON] * 2
        for tet in result.elements:
            assert tet.content == pytest.approx(1.0 / 6.0)
            assert tet.validate() == ElementErrorFlag.NONE
        assert total_content(result) == pytest.approx(1.0 / 3.0)

    def test_five_nodes(self, unit_cube, mesh_builder):
        unit_cube[4:] = [0.5, 0.5, 1.0]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert result.n_nodes == 5
        assert types_of(result) == [MeshElemType.TETRAHEDRON] * 2
        assert [tet.node_ids for tet in result.elements] == [[0, 1, 2, 4], [0, 2, 3, 4]]
        assert total_content(result) == pytest.approx(1.0 / 3.0)

    def test_four_nodes_flattened(self, unit_cube, mesh_builder):
        unit_cube[4:] = unit_cube[:4]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])

        result = MeshRevision(mesh).simplify_mesh("simplified", EPS, min_elem_dim=2)
        assert types_of(result) == [MeshElemType.QUAD]
        assert result.elements[0].content == pytest.approx(1.0)

        assert MeshRevision(mesh).simplify_mesh("simplified", EPS, min_elem_dim=3) is None

    def test_collapsed_to_single_node(self, unit_cube, mesh_builder, caplog):
        coords = np.zeros_like(unit_cube)
        mesh = mesh_builder(coords, [(Hex, range(8))])
        with caplog.at_level(logging.ERROR, logger="femesh"):
            assert MeshRevision(mesh).simplify_mesh("simplified", EPS) is None
        assert "Element 0" not in caplog.text


class TestSimplifyPrism:
    """Tests for the reduction of degenerate prisms."""

    def test_lateral_edge(self, unit_prism, mesh_builder):
        unit_prism[3] = unit_prism[0]
        mesh = mesh_builder(unit_prism, [(Prism, range(6))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert [tet.node_ids for tet in result.elements] == [[1, 2, 0, 3], [3, 2, 0, 4]]
        assert total_content(result) == pytest.approx(1.0 / 3.0)

    def test_triangle_edge(self, unit_prism, mesh_builder):
        unit_prism[1] = unit_prism[0]
        mesh = mesh_builder(unit_prism, [(Prism, range(6))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert [tet.node_ids for tet in result.elements] == [[2, 4, 3, 0], [3, 0, 4, 1]]
        for tet in result.elements:
            assert tet.content == pytest.approx(1.0 / 6.0)

    @pytest.mark.parametrize("edge", Prism.EDGE_NODES)
    def test_every_edge(self, unit_prism, mesh_builder, edge):
        i, j = edge
        unit_prism[j] = unit_prism[i]
        mesh = mesh_builder(unit_prism, [(Prism, range(6))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert types_of(result) == [MeshElemType.TETRAHEDRON] * 2
        assert all(tet.validate() == ElementErrorFlag.NONE for tet in result.elements)
        assert total_content(result) == pytest.approx(1.0 / 3.0)

    def test_three_nodes(self, unit_prism, mesh_builder):
        unit_prism[3:] = unit_prism[:3]
        mesh = mesh_builder(unit_prism, [(Prism, range(6))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS, min_elem_dim=2)
        assert types_of(result) == [MeshElemType.TRIANGLE]
        assert result.elements[0].content == pytest.approx(0.5)


class TestSimplifyLowerOrder:
    """Tests for the reduction of tetrahedra, pyramids, quads and triangles."""

    def test_pyramid_apex_on_base(self, mesh_builder):
        mesh = mesh_builder(SQUARE + [[0, 0, 0]], [(Pyramid, range(5))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)
        assert types_of(result) == [MeshElemType.QUAD]
        assert result.elements[0].validate() == ElementErrorFlag.NONE
        assert MeshRevision(mesh).simplify_mesh("simplified", EPS, min_elem_dim=3) is None

    def test_pyramid_base_edge(self, mesh_builder):
        coords = [[0, 0, 0], [0, 0, 0], [1, 1, 0], [0, 1, 0], [0.5, 0.5, 1.0]]
        mesh = mesh_builder(coords, [(Pyramid, range(5))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS, min_elem_dim=3)
        assert types_of(result) == [MeshElemType.TETRAHEDRON]
        assert result.elements[0].content == pytest.approx(1.0 / 6.0)

    def test_tet_to_triangle(self, mesh_builder):
        coords = UNIT_TET[:3] + [[0, 0, 0]]
        mesh = mesh_builder(coords, [(Tet, range(4))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)
        assert types_of(result) == [MeshElemType.TRIANGLE]
        assert result.elements[0].content == pytest.approx(0.5)
        assert MeshRevision(mesh).simplify_mesh("simplified", EPS, min_elem_dim=3) is None

    def test_quad_to_triangle(self, mesh_builder):
        coords = SQUARE[:3] + [[1, 1, 0]]
        mesh = mesh_builder(coords, [(Quad, range(4))])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)
        assert types_of(result) == [MeshElemType.TRIANGLE]
        assert result.elements[0].node_ids == [0, 1, 2]

    def test_triangle_to_line(self, mesh_builder):
        coords = [[0, 0, 0], [1, 0, 0], [1e-9, 0, 0]]
        mesh = mesh_builder(coords, [(Tri, range(3), 7)])
        result = MeshRevision(mesh).simplify_mesh("simplified", EPS)
        assert result.n_nodes == 2
        assert isinstance(result.elements[0], Line)
        assert result.elements[0].node_ids == [0, 1]
        assert result.elements[0].value == 7


class TestMinElemDim:
    """Tests for the minimum element dimension filter."""

    @pytest.fixture
    def triangle_mesh(self, mesh_builder):
        coords = [[0, 0, 0], [1, 0, 0], [0, 1, 0], [2, 0, 0], [1 + 1e-9, 0, 0]]
        return mesh_builder(coords, [(Tri, (0, 1, 2)), (Tri, (1, 3, 4))])

    def test_degenerate_triangle_becomes_line(self, triangle_mesh):
        result = MeshRevision(triangle_mesh).simplify_mesh("simplified", EPS, min_elem_dim=1)
        assert types_of(result) == [MeshElemType.TRIANGLE, MeshElemType.LINE]
        assert result.n_nodes == 4

    def test_lines_are_dropped(self, triangle_mesh):
        result = MeshRevision(triangle_mesh).simplify_mesh("simplified", EPS, min_elem_dim=2)
        assert types_of(result) == [MeshElemType.TRIANGLE]

    def test_intact_low_dimensional_elements_are_dropped(self, triangle_mesh):
        assert MeshRevision(triangle_mesh).simplify_mesh("simplified", EPS, min_elem_dim=3) is None

    @pytest.mark.parametrize("min_elem_dim", [0, 4])
    def test_invalid_min_elem_dim(self, hex_mesh, min_elem_dim):
        with pytest.raises(ValueError):
            MeshRevision(hex_mesh).simplify_mesh("simplified", EPS, min_elem_dim=min_elem_dim)


class TestSubdivision:
    """Tests for the subdivision of elements with non-planar faces."""

    WARPED_QUAD = [[0, 0, 0], [1, 0, 0], [1, 1, 0.5], [0, 1, 0]]

    def test_warped_quad(self, mesh_builder):
        mesh = mesh_builder(self.WARPED_QUAD, [(Quad, range(4), 3)])
        for result in (
            MeshRevision(mesh).subdivide_mesh("subdivided"),
            MeshRevision(mesh).simplify_mesh("simplified", EPS),
        ):
            assert [tri.node_ids for tri in result.elements] == [[0, 1, 2], [0, 2, 3]]
            assert all(tri.value == 3 for tri in result.elements)

    def test_warped_hex(self, unit_cube, mesh_builder):
        unit_cube[6] = [1.0, 1.0, 1.3]
        mesh = mesh_builder(unit_cube, [(Hex, range(8))])
        result = MeshRevision(mesh).subdivide_mesh("subdivided")

        assert result.n_nodes == 8
        assert types_of(result) == [MeshElemType.TETRAHEDRON] * 6
        assert all(not tet.has_zero_volume() for tet in result.elements)
        assert total_content(result) == pytest.approx(1.1)

    def test_warped_pyramid(self, mesh_builder):
        coords = [[0, 0, 0], [1, 0, 0], [1, 1, 0.3], [0, 1, 0], [0.5, 0.5, 1.0]]
        mesh = mesh_builder(coords, [(Pyramid, range(5))])
        result = MeshRevision(mesh).subdivide_mesh("subdivided")
        assert [tet.node_ids for tet in result.elements] == [[0, 1, 2, 4], [0, 2, 3, 4]]

    def test_warped_prism(self, unit_prism, mesh_builder):
        unit_prism[4] = [1.0, 0.2, 1.0]
        mesh = mesh_builder(unit_prism, [(Prism, range(6))])
        result = MeshRevision(mesh).subdivide_mesh("subdivided")
        assert [tet.node_ids for tet in result.elements] == [[0, 1, 2, 3], [3, 2, 4, 5], [2, 1, 3, 4]]

    def test_planar_elements_are_copied(self, hex_mesh):
        result = MeshRevision(hex_mesh).subdivide_mesh("subdivided")
        assert types_of(result) == [MeshElemType.HEXAHEDRON]
        assert result.nodes[0] is not hex_mesh.nodes[0]


class TestEmptyAndFailingInput:
    """Tests for empty meshes, invalid arguments and per-element failures."""

    def test_empty_mesh(self):
        mesh = Mesh("empty", [], [])
        assert MeshRevision(mesh).simplify_mesh("simplified", EPS) is None
        assert MeshRevision(mesh).subdivide_mesh("subdivided") is None

    def test_negative_tolerance(self, hex_mesh):
        with pytest.raises(ValueError):
            MeshRevision(hex_mesh).simplify_mesh("simplified", -1.0)

    def test_unknown_element_type_is_dropped(self, mesh_builder, monkeypatch, caplog):
        coords = [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], [2, 0, 0]]
        mesh = mesh_builder(coords, [(Tri, (1, 4, 2)), (Quad, (0, 1, 2, 3))])
        monkeypatch.delitem(ELEMENT_CLASSES, MeshElemType.TRIANGLE)

        with caplog.at_level(logging.ERROR, logger="femesh"):
            result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert types_of(result) == [MeshElemType.QUAD]
        assert "Element 0 has unknown element type" in caplog.text

    def test_diagonal_collapse_is_dropped(self, unit_cube, mesh_builder, caplog):
        neighbour = unit_cube + [5.0, 0.0, 0.0]
        unit_cube[6] = unit_cube[0]
        mesh = mesh_builder(np.vstack([unit_cube, neighbour]), [(Hex, range(8)), (Hex, range(8, 16))])

        with caplog.at_level(logging.ERROR, logger="femesh"):
            result = MeshRevision(mesh).simplify_mesh("simplified", EPS)

        assert types_of(result) == [MeshElemType.HEXAHEDRON]
        assert result.elements[0].content == pytest.approx(1.0)
        assert "Element 0: unexpected error during hexahedron reduction." in caplog.text

    def test_no_valid_quad_order_is_dropped(self, mesh_builder, caplog):
        # one base corner lies inside the triangle of the other three
        coords = [[0, 0, 0], [2, 0, 0], [0.5, 0.5, 0], [0, 2, 0], [0, 0, 0]]
        mesh = mesh_builder(coords, [(Pyramid, range(5))])

        with caplog.at_level(logging.ERROR, logger="femesh"):
            assert MeshRevision(mesh).simplify_mesh("simplified", EPS, min_elem_dim=1) is None

        assert "Element 0: unexpected error during pyramid reduction." in caplog.text

    def test_coplanar_nodes_below_min_elem_dim_are_dropped_silently(self, mesh_builder, caplog):
        coords = [[0, 0, 0], [2, 0, 0], [0.5, 0.5, 0], [0, 2, 0], [0, 0, 0]]
        mesh = mesh_builder(coords, [(Pyramid, range(5))])

        with caplog.at_level(logging.ERROR, logger="femesh"):
            assert MeshRevision(mesh).simplify_mesh("simplified", EPS, min_elem_dim=3) is None

        assert "Element 0" not in caplog.text
