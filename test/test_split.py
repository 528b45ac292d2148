import pytest

from config.feature_flags import set_flag
from sketchkernel import (
    Arc2D, BSpline2D, ConstraintType, EllipseArc2D, Line2D, Point2D, PointPos,
    SketchPoint2D, make_coincident, make_horizontal, make_point_on_object,
)
from sketchkernel.operations import ResultStatus, SplitOperation

from sketch_test_utils import (
    count_constraints, delete_all_unused_internal_geometry, make_arc,
    make_circle, make_ellipse, make_line, make_non_periodic_bspline,
    make_parabola_arc, make_periodic_bspline, point_at_normalized,
)


def test_split_line_segment(sketch):
    geo_id = sketch.add_geometry(make_line())

    result = sketch.split(geo_id, Point2D(2.0, 3.1))

    assert result == 0
    assert sketch.get_highest_curve_index() == geo_id + 1
    assert count_constraints(sketch, ConstraintType.COINCIDENT) == 1


def test_split_line_segment_preserves_shape(sketch):
    geo_id = sketch.add_geometry(make_line())

    sketch.split(geo_id, Point2D(2.0, 3.0))

    head, tail = sketch.get_geometry(0), sketch.get_geometry(1)
    assert isinstance(head, Line2D) and isinstance(tail, Line2D)
    assert head.start_point.as_tuple() == pytest.approx((1.0, 2.0))
    assert head.end_point.as_tuple() == pytest.approx((2.0, 3.0))
    assert tail.start_point.as_tuple() == pytest.approx((2.0, 3.0))
    assert tail.end_point.as_tuple() == pytest.approx((3.0, 4.0))

    joint = sketch.get_constraint(0)
    assert (joint.first, joint.first_pos) == (0, PointPos.END)
    assert (joint.second, joint.second_pos) == (1, PointPos.START)


def test_split_circle(sketch):
    geo_id = sketch.add_geometry(make_circle())

    result = sketch.split(geo_id, Point2D(2.0, 3.1))

    assert result == 0
    # Der Kreis wird an derselben GeoId zum Bogen
    assert sketch.get_highest_curve_index() == geo_id
    assert isinstance(sketch.get_geometry(geo_id), Arc2D)


def test_split_ellipse(sketch):
    geo_id = sketch.add_geometry(make_ellipse())

    result = sketch.split(geo_id, Point2D(2.0, 3.1))

    assert result == 0
    assert sketch.get_highest_curve_index() == geo_id
    assert isinstance(sketch.get_geometry(geo_id), EllipseArc2D)


def test_split_arc_of_circle(sketch):
    geo_id = sketch.add_geometry(make_arc())

    result = sketch.split(geo_id, Point2D(-2.0, 3.1))

    assert result == 0
    assert sketch.get_highest_curve_index() == geo_id + 1
    # Endpunkte und Mittelpunkte der beiden Bögen
    assert count_constraints(sketch, ConstraintType.COINCIDENT) == 2


def test_split_arc_without_center_coincident(sketch):
    set_flag("sketch_trim_center_coincident", False)
    geo_id = sketch.add_geometry(make_arc())

    sketch.split(geo_id, Point2D(-2.0, 3.1))

    assert count_constraints(sketch, ConstraintType.COINCIDENT) == 1


def test_split_arc_of_conic(sketch):
    geo_id = sketch.add_geometry(make_parabola_arc())

    result = sketch.split(geo_id, Point2D(1.0, -1.1))
    delete_all_unused_internal_geometry(sketch)

    assert result == 0
    assert sketch.get_highest_curve_index() == 1
    assert count_constraints(sketch, ConstraintType.COINCIDENT) == 1


def test_split_non_periodic_bspline(sketch):
    geo_id = sketch.add_geometry(make_non_periodic_bspline())

    result = sketch.split(geo_id, Point2D(-0.5, 1.1))
    delete_all_unused_internal_geometry(sketch)

    assert result == 0
    assert sketch.get_highest_curve_index() == 1
    assert count_constraints(sketch, ConstraintType.COINCIDENT) == 1


def test_split_non_periodic_bspline_keeps_shape(sketch):
    original = make_non_periodic_bspline()
    geo_id = sketch.add_geometry(make_non_periodic_bspline())
    split_point = point_at_normalized(original, 0.4)

    sketch.split(geo_id, split_point)

    head, tail = sketch.get_geometry(0), sketch.get_geometry(1)
    assert isinstance(head, BSpline2D) and isinstance(tail, BSpline2D)
    assert head.end_point.distance_to(split_point) < 1e-6
    assert tail.start_point.distance_to(split_point) < 1e-6
    assert tail.end_point.as_tuple() == pytest.approx((0.0, 0.0), abs=1e-6)
    # Stichprobe aus dem vorderen Stück liegt auf der Originalkurve
    probe = original.point_at(0.3)
    assert head.point_at(0.3).distance_to(probe) < 1e-6


def test_split_periodic_bspline(sketch):
    geo_id = sketch.add_geometry(make_periodic_bspline())

    result = sketch.split(geo_id, Point2D(-0.5, 1.1))
    delete_all_unused_internal_geometry(sketch)

    assert result == 0
    assert sketch.get_highest_curve_index() == 0
    assert not sketch.get_geometry(0).periodic


def test_split_bspline_with_exposed_internal_geometry(sketch):
    geo_id = sketch.add_geometry(make_non_periodic_bspline())
    sketch.expose_internal_geometry(geo_id)

    result = sketch.split(geo_id, point_at_normalized(make_non_periodic_bspline(), 0.5))

    assert result == 0
    # Alte Pole/Knoten sind weg, übrig bleiben die beiden Stücke
    assert sketch.get_highest_curve_index() == 1
    assert count_constraints(sketch, ConstraintType.INTERNAL_ALIGNMENT) == 0


def test_split_moves_end_constraints_to_tail(sketch):
    line = sketch.add_geometry(make_line())
    other = sketch.add_geometry(Line2D(Point2D(3.0, 4.0), Point2D(5.0, 4.0)))
    sketch.add_constraint(make_coincident(line, PointPos.END, other, PointPos.START))
    sketch.add_constraint(make_horizontal(other))

    sketch.split(line, Point2D(2.0, 3.0))

    moved = sketch.get_constraint(0)
    assert (moved.first, moved.first_pos) == (2, PointPos.END)
    assert (moved.second, moved.second_pos) == (other, PointPos.START)


def test_split_duplicates_edge_constraints(sketch):
    line = sketch.add_geometry(Line2D(Point2D(0.0, 0.0), Point2D(10.0, 0.0)))
    sketch.add_constraint(make_horizontal(line))

    sketch.split(line, Point2D(4.0, 0.0))

    horizontals = [c for c in sketch.constraints if c.type == ConstraintType.HORIZONTAL]
    assert sorted(c.first for c in horizontals) == [0, 1]
    assert horizontals[0].id != horizontals[1].id


def test_split_at_endpoint_is_rejected(sketch):
    geo_id = sketch.add_geometry(make_line())

    assert sketch.split(geo_id, Point2D(0.0, 1.0)) == -1
    assert sketch.last_operation_result.status == ResultStatus.NO_TARGET
    assert sketch.get_highest_curve_index() == 0


def test_split_point_is_rejected(sketch):
    geo_id = sketch.add_geometry(SketchPoint2D(Point2D(1.0, 1.0)))

    assert sketch.split(geo_id, Point2D(1.0, 1.0)) == -1


def test_split_respects_max_distance(sketch):
    geo_id = sketch.add_geometry(Line2D(Point2D(0.0, 0.0), Point2D(10.0, 0.0)))

    result = SplitOperation(sketch).execute(geo_id, Point2D(5.0, 2.0), max_distance=1.0)

    assert not result.success
    assert sketch.get_highest_curve_index() == 0


def test_split_drops_point_on_start_of_closed_curve(sketch):
    circle = sketch.add_geometry(make_circle())
    point = sketch.add_geometry(SketchPoint2D(Point2D(4.0, 2.0)))
    sketch.add_constraint(make_coincident(point, PointPos.START, circle, PointPos.START))
    sketch.add_constraint(make_point_on_object(point, PointPos.START, circle))

    sketch.split(circle, Point2D(1.0, 5.0))

    # START/END des Kreises existieren nicht mehr, PointOnObject bleibt
    assert count_constraints(sketch, ConstraintType.COINCIDENT) == 0
    assert count_constraints(sketch, ConstraintType.POINT_ON_OBJECT) == 1
