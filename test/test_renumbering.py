from sketchkernel import (
    Constraint, ConstraintType, GeoEnum, PointPos,
    change_constraint_after_deleting_geo, get_constraint_after_deleting_geo,
    make_coincident, make_horizontal, make_point_on_object, make_tangent,
)
from sketchkernel.renumbering import remap_constraints

from sketch_test_utils import count_constraints, make_arc, make_circle, make_line


def _coincident_42_10():
    return make_coincident(42, PointPos.START, 10, PointPos.END)


def _tangent_with_external():
    constraint = make_tangent(-8, 0)
    constraint.third = 42
    constraint.third_pos = PointPos.START
    return constraint


def test_none_constraint_passes_through():
    assert get_constraint_after_deleting_geo(None, 5) is None
    # In-place Variante darf None nicht anfassen
    change_constraint_after_deleting_geo(None, 5)


def test_get_constraint_after_deleting_internal_geo():
    constraint = _coincident_42_10()

    shifted = get_constraint_after_deleting_geo(constraint, 5)

    assert shifted.first == 41
    assert shifted.second == 9
    # Original bleibt unverändert
    assert constraint.type == ConstraintType.COINCIDENT
    assert constraint.first == 42
    assert constraint.second == 10


def test_get_constraint_after_deleting_external_geo():
    constraint = _coincident_42_10()

    shifted = get_constraint_after_deleting_geo(constraint, -5)

    assert shifted.first == 42
    assert shifted.second == 10
    assert shifted.third == GeoEnum.GEO_UNDEF


def test_get_constraint_after_deleting_referenced_geo():
    assert get_constraint_after_deleting_geo(_coincident_42_10(), 10) is None


def test_change_constraint_after_deleting_external_geo():
    constraint = _tangent_with_external()

    change_constraint_after_deleting_geo(constraint, -3)

    assert constraint.type == ConstraintType.TANGENT
    assert constraint.first == -7
    assert constraint.second == 0
    assert constraint.third == 42


def test_change_constraint_after_deleting_referenced_geo_tombstones():
    constraint = _tangent_with_external()

    change_constraint_after_deleting_geo(constraint, 0)

    assert constraint.type == ConstraintType.NONE
    assert constraint.is_tombstone


def test_axes_are_not_shifted_by_internal_deletion():
    constraint = make_point_on_object(3, PointPos.START, GeoEnum.H_AXIS)

    shifted = get_constraint_after_deleting_geo(constraint, 1)

    assert shifted.first == 2
    assert shifted.second == GeoEnum.H_AXIS


def test_remap_constraints_drops_deleted_references():
    constraints = [
        make_coincident(0, PointPos.END, 2, PointPos.START),
        make_horizontal(3),
        make_horizontal(1),
    ]
    # 1 gelöscht, 2 → 1, 3 → 2
    mapping = {1: None, 2: 1, 3: 2}

    kept = remap_constraints(constraints, mapping)

    assert len(kept) == 2
    assert (kept[0].first, kept[0].second) == (0, 1)
    assert kept[1].first == 2


def test_del_geometry_renumbers_constraints(sketch):
    line, circle, arc = sketch.add_geometries([make_line(), make_circle(), make_arc()])
    sketch.add_constraint(make_coincident(line, PointPos.END, arc, PointPos.START))
    sketch.add_constraint(make_point_on_object(arc, PointPos.MID, circle))
    sketch.add_constraint(make_horizontal(line))

    sketch.del_geometry(circle)

    assert sketch.get_highest_curve_index() == 1
    # PointOnObject auf dem Kreis ist weg, der Bogen rückt auf GeoId 1
    assert sketch.constraint_count() == 2
    coincident = sketch.get_constraint(0)
    assert (coincident.first, coincident.second) == (0, 1)
    assert count_constraints(sketch, ConstraintType.POINT_ON_OBJECT) == 0


def test_del_geometries_in_one_step(sketch):
    ids = sketch.add_geometries([make_line() for _ in range(5)])
    sketch.add_constraint(make_coincident(ids[0], PointPos.END, ids[4], PointPos.START))
    sketch.add_constraint(make_coincident(ids[1], PointPos.END, ids[3], PointPos.START))

    sketch.del_geometries([ids[1], ids[2]])

    assert sketch.get_highest_curve_index() == 2
    assert sketch.constraint_count() == 1
    remaining = sketch.get_constraint(0)
    assert (remaining.first, remaining.second) == (0, 2)


def test_del_external_geometry_shifts_external_references(sketch):
    line = sketch.add_geometry(make_line())
    first_ext = sketch.add_external_geometry(make_line())
    second_ext = sketch.add_external_geometry(make_circle())
    sketch.add_constraint(make_point_on_object(line, PointPos.START, first_ext))
    sketch.add_constraint(make_point_on_object(line, PointPos.END, second_ext))

    sketch.del_external_geometry(first_ext)

    assert sketch.get_external_geometry_count() == 1
    assert sketch.constraint_count() == 1
    assert sketch.get_constraint(0).second == GeoEnum.REF_EXT


def test_purge_tombstoned_constraints(sketch):
    line = sketch.add_geometry(make_line())
    sketch.add_constraint(make_horizontal(line))
    sketch.add_constraint(Constraint(ConstraintType.NONE))

    assert sketch.purge_tombstoned_constraints() == 1
    assert sketch.constraint_count() == 1
