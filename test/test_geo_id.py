import pytest

from sketchkernel import (
    Arc2D, Circle2D, GeoEnum, GeoIdOutOfRange, Line2D, Point2D, PointPos,
    SketchPoint2D,
)

from sketch_test_utils import make_arc, make_circle, make_line


def _unit_line():
    return Line2D(Point2D(0.0, 0.0), Point2D(1.0, 0.0))


def test_shape_type_edge_without_geometry(sketch):
    # Kanten werden nicht auf Existenz geprüft
    assert sketch.geo_id_from_shape_type("Edge1") == (0, PointPos.NONE)
    assert sketch.geo_id_from_shape_type("Edge7") == (6, PointPos.NONE)


def test_shape_type_vertex_of_line(sketch):
    sketch.add_geometry(_unit_line())

    assert sketch.geo_id_from_shape_type("Vertex1") == (0, PointPos.START)
    assert sketch.geo_id_from_shape_type("Vertex2") == (0, PointPos.END)


def test_shape_type_vertex_order_across_curve_types(sketch):
    sketch.add_geometry(SketchPoint2D(Point2D(5.0, 5.0)))
    sketch.add_geometry(make_circle())
    sketch.add_geometry(make_arc())

    assert sketch.vertex_count() == 5
    assert sketch.geo_id_from_shape_type("Vertex1") == (0, PointPos.START)
    assert sketch.geo_id_from_shape_type("Vertex2") == (1, PointPos.MID)
    assert sketch.geo_id_from_shape_type("Vertex3") == (2, PointPos.START)
    assert sketch.geo_id_from_shape_type("Vertex4") == (2, PointPos.END)
    assert sketch.geo_id_from_shape_type("Vertex5") == (2, PointPos.MID)


def test_shape_type_missing_vertex_raises(sketch):
    sketch.add_geometry(_unit_line())

    with pytest.raises(GeoIdOutOfRange):
        sketch.geo_id_from_shape_type("Vertex3")


def test_shape_type_external_edge(sketch):
    assert sketch.geo_id_from_shape_type("ExternalEdge1") == (GeoEnum.REF_EXT, PointPos.NONE)
    assert sketch.geo_id_from_shape_type("ExternalEdge3") == (GeoEnum.REF_EXT - 2, PointPos.NONE)


def test_shape_type_axes_and_root_point(sketch):
    assert sketch.geo_id_from_shape_type("H_Axis") == (GeoEnum.H_AXIS, PointPos.NONE)
    assert sketch.geo_id_from_shape_type("V_Axis") == (GeoEnum.V_AXIS, PointPos.NONE)
    assert sketch.geo_id_from_shape_type("RootPoint") == (GeoEnum.RT_PNT, PointPos.START)


@pytest.mark.parametrize("name", ["Face1", "Edge0", "Edge", "Vertex-1", "edge1", ""])
def test_shape_type_unknown_is_undefined(sketch, name):
    assert sketch.geo_id_from_shape_type(name) == (GeoEnum.GEO_UNDEF, PointPos.NONE)


def test_get_geometry_axes_are_construction_lines(sketch):
    h_axis = sketch.get_geometry(GeoEnum.H_AXIS)
    v_axis = sketch.get_geometry(GeoEnum.V_AXIS)

    assert h_axis.construction and v_axis.construction
    assert h_axis.end_point.as_tuple() == pytest.approx((1.0, 0.0))
    assert v_axis.end_point.as_tuple() == pytest.approx((0.0, 1.0))


def test_get_geometry_out_of_range(sketch):
    sketch.add_geometry(make_line())

    with pytest.raises(GeoIdOutOfRange):
        sketch.get_geometry(1)
    # Externe Geometrie, die es nicht gibt
    with pytest.raises(GeoIdOutOfRange):
        sketch.get_geometry(GeoEnum.REF_EXT)
    # GeoIdOutOfRange ist auch ein IndexError
    with pytest.raises(IndexError):
        sketch.get_geometry(GeoEnum.GEO_UNDEF)


def test_external_geometry_ids_count_down(sketch):
    first = sketch.add_external_geometry(make_line())
    second = sketch.add_external_geometry(make_circle())

    assert first == GeoEnum.REF_EXT
    assert second == GeoEnum.REF_EXT - 1
    assert sketch.get_external_geometry_count() == 2
    assert isinstance(sketch.get_geometry(second), Circle2D)
    assert sketch.get_geometry(first).construction


def test_highest_curve_index(sketch):
    assert sketch.get_highest_curve_index() == -1

    sketch.add_geometry(make_line())
    sketch.add_geometry(make_arc())

    assert sketch.get_highest_curve_index() == 1
    assert isinstance(sketch.get_geometry(1), Arc2D)


def test_tag_survives_renumbering(sketch):
    ids = sketch.add_geometries([make_line(), make_circle(), make_arc()])
    tags = [sketch.get_geometry_tag(geo_id) for geo_id in ids]

    sketch.del_geometry(0)

    # Der Bogen rückt von GeoId 2 auf 1, sein Tag bleibt
    assert sketch.get_geo_id_from_tag(tags[2]) == 1
    assert sketch.get_geo_id_from_tag(tags[1]) == 0
    assert sketch.get_geo_id_from_tag(tags[0]) == GeoEnum.GEO_UNDEF


def test_tags_are_never_reused(sketch):
    first = sketch.add_geometry(make_line())
    old_tag = sketch.get_geometry_tag(first)
    sketch.del_geometry(first)

    new_id = sketch.add_geometry(make_line())

    assert new_id == 0
    assert sketch.get_geometry_tag(new_id) != old_tag
