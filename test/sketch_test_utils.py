"""
Gemeinsame Testgeometrie für die Sketch-Engine.

Die Kurven entsprechen den typischen Referenzkurven: Linie (1,2)-(3,4),
Kreis/Bogen um (1,2) mit r=3, Ellipse a=4 b=3 und die beiden
B-Splines mit den Polen (1,0),(1,1),(1,0.5),(0,1),(0,0).
"""

import math

from sketchkernel import (
    BSpline2D, Circle2D, Arc2D, Ellipse2D, HyperbolaArc2D, Line2D,
    ParabolaArc2D, Point2D, Sketch,
)


TYPICAL_POLES = [Point2D(1, 0), Point2D(1, 1), Point2D(1, 0.5), Point2D(0, 1), Point2D(0, 0)]


def make_non_periodic_bspline() -> BSpline2D:
    return BSpline2D(poles=list(TYPICAL_POLES), knots=[0.0, 1.0, 2.0],
                     multiplicities=[4, 1, 4], degree=3)


def make_periodic_bspline() -> BSpline2D:
    return BSpline2D(poles=list(TYPICAL_POLES), knots=[0.0, 0.3, 1.0, 1.5, 1.8, 2.0],
                     multiplicities=[1, 1, 1, 1, 1, 1], degree=3, periodic=True)


def make_line() -> Line2D:
    return Line2D(Point2D(1, 2), Point2D(3, 4))


def make_circle() -> Circle2D:
    return Circle2D(Point2D(1, 2), 3.0)


def make_arc() -> Arc2D:
    return Arc2D(Point2D(1, 2), 3.0, math.pi / 3, 1.5 * math.pi)


def make_ellipse() -> Ellipse2D:
    return Ellipse2D(Point2D(1, 2), 4.0, 3.0)


def make_hyperbola_arc() -> HyperbolaArc2D:
    return HyperbolaArc2D(Point2D(1, 2), 4.0, 3.0, 0.0, math.pi / 3, 1.5 * math.pi)


def make_parabola_arc() -> ParabolaArc2D:
    return ParabolaArc2D(Point2D(1, 2), 3.0, 0.0, -1.5 * math.pi, 1.5 * math.pi)


def point_at_normalized(curve, t: float) -> Point2D:
    """Kurvenpunkt bei t ∈ [0, 1] über den Parameterbereich."""
    first, last = curve.first_parameter, curve.last_parameter
    return curve.point_at(first + t * (last - first))


def crossing_segment(curve, t: float, half_length: float = 0.1) -> Line2D:
    """Kurze Strecke quer zur Kurve, die sie bei t sicher kreuzt."""
    first, last = curve.first_parameter, curve.last_parameter
    u = first + t * (last - first)
    p = curve.value(u)
    d = curve.derivative(u)
    normal = [-d[1], d[0]]
    scale = half_length / math.hypot(*normal)
    return Line2D(Point2D(p[0] - normal[0] * scale, p[1] - normal[1] * scale),
                  Point2D(p[0] + normal[0] * scale, p[1] + normal[1] * scale))


def touching_segment(curve, t: float, length: float = 0.1) -> Line2D:
    """Kurze Strecke, die mit ihrem Startpunkt senkrecht auf der Kurve steht."""
    first, last = curve.first_parameter, curve.last_parameter
    u = first + t * (last - first)
    p = curve.value(u)
    d = curve.derivative(u)
    normal = [-d[1], d[0]]
    scale = length / math.hypot(*normal)
    return Line2D(Point2D(p[0], p[1]),
                  Point2D(p[0] + normal[0] * scale, p[1] + normal[1] * scale))


def delete_all_unused_internal_geometry(sketch: Sketch) -> None:
    """Zieht interne Geometrie aller Kurven zurück (GeoIds verschieben sich dabei)."""
    geo_id = 0
    while geo_id <= sketch.get_highest_curve_index():
        geo_id = sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id) + 1


def count_constraints(sketch: Sketch, constraint_type) -> int:
    return sum(1 for c in sketch.constraints if c.type == constraint_type)

