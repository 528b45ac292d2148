import math

import pytest

from sketchkernel import (
    Circle2D, ConstraintType, InternalAlignmentType, Line2D, Point2D, PointPos,
    SketchPoint2D, make_coincident, make_internal_alignment,
)

from sketch_test_utils import (
    make_circle, make_ellipse, make_hyperbola_arc, make_line,
    make_non_periodic_bspline, make_parabola_arc,
)

IA = InternalAlignmentType


def _alignment_count(sketch, geo_id, alignment):
    return sum(
        1 for c in sketch.constraints
        if c.type == ConstraintType.INTERNAL_ALIGNMENT
        and c.alignment_type == alignment
        and c.second == geo_id
    )


def _children(sketch, geo_id, alignment):
    return [
        sketch.get_geometry(c.first) for c in sketch.constraints
        if c.is_internal_alignment and c.alignment_type == alignment and c.second == geo_id
    ]


def test_delete_expose_internal_geometry_of_ellipse(sketch):
    geo_id = sketch.add_geometry(make_ellipse())

    sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id)
    assert sketch.get_highest_curve_index() == 0

    assert sketch.expose_internal_geometry(geo_id) == 4
    for alignment in (IA.ELLIPSE_MAJOR_DIAMETER, IA.ELLIPSE_MINOR_DIAMETER,
                      IA.ELLIPSE_FOCUS1, IA.ELLIPSE_FOCUS2):
        assert _alignment_count(sketch, geo_id, alignment) == 1

    sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id)
    assert sketch.get_highest_curve_index() == 0
    assert sketch.constraint_count() == 0


def test_delete_expose_internal_geometry_of_hyperbola(sketch):
    geo_id = sketch.add_geometry(make_hyperbola_arc())

    sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id)
    assert sketch.get_highest_curve_index() == 0

    assert sketch.expose_internal_geometry(geo_id) == 3
    for alignment in (IA.HYPERBOLA_MAJOR, IA.HYPERBOLA_MINOR, IA.HYPERBOLA_FOCUS):
        assert _alignment_count(sketch, geo_id, alignment) == 1

    sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id)
    assert sketch.get_highest_curve_index() == 0


def test_delete_expose_internal_geometry_of_parabola(sketch):
    geo_id = sketch.add_geometry(make_parabola_arc())

    sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id)
    assert sketch.get_highest_curve_index() == 0

    assert sketch.expose_internal_geometry(geo_id) == 2
    for alignment in (IA.PARABOLA_FOCAL_AXIS, IA.PARABOLA_FOCUS):
        assert _alignment_count(sketch, geo_id, alignment) == 1

    sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id)
    assert sketch.get_highest_curve_index() == 0


def test_delete_expose_internal_geometry_of_bspline(sketch):
    bspline = make_non_periodic_bspline()
    geo_id = sketch.add_geometry(bspline)

    sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id)
    assert sketch.get_highest_curve_index() == 0

    sketch.expose_internal_geometry(geo_id)
    assert _alignment_count(sketch, geo_id, IA.BSPLINE_CONTROL_POINT) == bspline.count_poles()
    assert _alignment_count(sketch, geo_id, IA.BSPLINE_KNOT_POINT) == bspline.count_knots()

    sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id)
    assert sketch.get_highest_curve_index() == 0


def test_delete_only_unused_internal_geometry_of_bspline(sketch):
    bsp_id = sketch.add_geometry(make_non_periodic_bspline())
    sketch.expose_internal_geometry(bsp_id)
    point_id = sketch.add_geometry(SketchPoint2D(Point2D(1.0, 1.0)))

    pole = next(
        c for c in sketch.constraints
        if c.is_internal_alignment
        and c.alignment_type == IA.BSPLINE_CONTROL_POINT
        and c.second == bsp_id
        and c.internal_alignment_index == 1
    )
    sketch.add_constraint(make_coincident(point_id, PointPos.START, pole.first, PointPos.MID))

    sketch.delete_unused_internal_geometry_and_update_geo_id(bsp_id)

    # B-Spline, benutzter Polkreis, Punkt auf dem Pol
    assert sketch.get_highest_curve_index() == 2
    assert _alignment_count(sketch, bsp_id, IA.BSPLINE_CONTROL_POINT) == 1
    assert isinstance(sketch.get_geometry(1), Circle2D)


def test_expose_is_idempotent(sketch):
    geo_id = sketch.add_geometry(make_ellipse())

    assert sketch.expose_internal_geometry(geo_id) == 4
    assert sketch.expose_internal_geometry(geo_id) == 0
    assert sketch.get_highest_curve_index() == 4


def test_expose_recreates_only_missing_elements(sketch):
    geo_id = sketch.add_geometry(make_ellipse())
    sketch.expose_internal_geometry(geo_id)
    focus = next(c.first for c in sketch.constraints if c.alignment_type == IA.ELLIPSE_FOCUS2)
    sketch.del_geometry(focus)

    assert sketch.expose_internal_geometry(geo_id) == 1
    assert _alignment_count(sketch, geo_id, IA.ELLIPSE_FOCUS2) == 1


def test_expose_on_curve_without_internal_geometry(sketch):
    line = sketch.add_geometry(make_line())
    circle = sketch.add_geometry(make_circle())

    assert sketch.expose_internal_geometry(line) == 0
    assert sketch.expose_internal_geometry(circle) == 0
    assert not sketch.has_internal_geometry(line)


def test_ellipse_internal_geometry_positions(sketch):
    geo_id = sketch.add_geometry(make_ellipse())
    sketch.expose_internal_geometry(geo_id)

    major = _children(sketch, geo_id, IA.ELLIPSE_MAJOR_DIAMETER)[0]
    minor = _children(sketch, geo_id, IA.ELLIPSE_MINOR_DIAMETER)[0]
    foci = _children(sketch, geo_id, IA.ELLIPSE_FOCUS1) + _children(sketch, geo_id, IA.ELLIPSE_FOCUS2)

    assert isinstance(major, Line2D)
    assert major.length == pytest.approx(8.0)
    assert minor.length == pytest.approx(6.0)
    c = math.sqrt(16.0 - 9.0)
    assert sorted(f.point.x for f in foci) == pytest.approx([1.0 - c, 1.0 + c])
    assert all(f.point.y == pytest.approx(2.0) for f in foci)


def test_internal_geometry_is_construction(sketch):
    geo_id = sketch.add_geometry(make_parabola_arc())
    sketch.expose_internal_geometry(geo_id)

    for child_id in sketch.get_internal_geometry_ids(geo_id):
        child = sketch.get_geometry(child_id)
        assert child.construction
        assert child.internal


def test_parabola_focus_position(sketch):
    geo_id = sketch.add_geometry(make_parabola_arc())
    sketch.expose_internal_geometry(geo_id)

    focus = _children(sketch, geo_id, IA.PARABOLA_FOCUS)[0]

    assert isinstance(focus, SketchPoint2D)
    assert focus.point.as_tuple() == pytest.approx((4.0, 2.0))


def test_deleting_parent_deletes_internal_geometry(sketch):
    line = sketch.add_geometry(make_line())
    geo_id = sketch.add_geometry(make_ellipse())
    sketch.expose_internal_geometry(geo_id)

    sketch.del_geometry(geo_id)

    assert sketch.get_highest_curve_index() == line
    assert sketch.constraint_count() == 0


def test_update_geo_id_after_deleting_earlier_children(sketch):
    first = sketch.add_geometry(make_ellipse())
    sketch.expose_internal_geometry(first)
    second = sketch.add_geometry(make_ellipse())

    # Hilfsgeometrie der ersten Ellipse liegt vor der zweiten
    assert second == 5
    sketch.delete_unused_internal_geometry_and_update_geo_id(first)

    assert sketch.get_highest_curve_index() == 1
    assert sketch.delete_unused_internal_geometry_and_update_geo_id(1) == 1


def test_detach_keeps_children_as_construction(sketch):
    geo_id = sketch.add_geometry(make_ellipse())
    sketch.expose_internal_geometry(geo_id)

    assert sketch.detach_internal_geometry(geo_id) == 4

    assert not sketch.has_internal_geometry(geo_id)
    assert sketch.get_highest_curve_index() == 4
    assert all(not sketch.get_geometry(i).internal for i in range(1, 5))


def test_alignment_on_wrong_parent_type_is_rejected(sketch):
    line = sketch.add_geometry(make_line())
    point = sketch.add_geometry(SketchPoint2D(Point2D(0.0, 0.0)))

    with pytest.raises(ValueError):
        sketch.add_constraint(
            make_internal_alignment(IA.ELLIPSE_FOCUS1, point, PointPos.START, line)
        )
