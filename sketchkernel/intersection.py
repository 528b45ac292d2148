"""
SketchKernel - Projektion und Schnittpunkte
===========================================

Generische Kurven-Algorithmen auf Basis der Parameterdarstellung:
- closest_parameter: Fußpunkt eines Punktes auf einer Kurve
- curve_intersections: alle Schnittpunkte zweier Kurven

Vorgehen: Abtastung beider Kurven zu Polygonen, vektorisierte
Segment-Schnitte (numpy), Verfeinerung per Newton. Endpunkte der
schneidenden Kurve, die auf der Zielkurve liegen, werden zusätzlich
erkannt (T-Stöße ohne echte Kreuzung).
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import math

import numpy as np
from loguru import logger
from scipy.optimize import minimize_scalar

from config.feature_flags import is_enabled
from config.tolerances import Tolerances
from .geo_enum import PointPos
from .geometry import Curve2D, GeometryType, Point2D


@dataclass
class Intersection:
    """Schnittpunkt zwischen Ziel- und schneidender Kurve"""
    param: float                  # Parameter auf der Zielkurve
    point: Point2D
    other_param: float            # Parameter auf der schneidenden Kurve
    other_pos: PointPos = PointPos.NONE   # START/END wenn am Endpunkt der schneidenden Kurve

    @property
    def at_other_endpoint(self) -> bool:
        return self.other_pos in (PointPos.START, PointPos.END)


def _normalize(curve: Curve2D, u: float) -> float:
    if curve.is_closed:
        first, period = curve.first_parameter, curve.period
        return first + math.fmod(math.fmod(u - first, period) + period, period)
    return min(max(u, curve.first_parameter), curve.last_parameter)


def closest_parameter(curve: Curve2D, point: Point2D) -> float:
    """Parameter des kurvennächsten Punktes zu `point`."""
    gtype = curve.geometry_type
    p = point.as_array()

    if gtype == GeometryType.POINT:
        return 0.0

    if gtype == GeometryType.LINE:
        s, e = curve.start.as_array(), curve.end.as_array()
        d = e - s
        length_sq = float(d @ d)
        if length_sq < Tolerances.EPSILON_MATH:
            return 0.0
        return min(1.0, max(0.0, float((p - s) @ d) / length_sq))

    if gtype == GeometryType.CIRCLE:
        c = curve.center.as_array()
        return _normalize(curve, math.atan2(p[1] - c[1], p[0] - c[0]))

    params = curve.sample_parameters()
    pts = curve.values(params)
    dist_sq = np.sum((pts - p) ** 2, axis=1)
    i = int(np.argmin(dist_sq))
    lo = params[max(i - 1, 0)]
    hi = params[min(i + 1, len(params) - 1)]
    if hi - lo < Tolerances.EPSILON_MATH:
        return float(params[i])

    def dist(u):
        q = curve.value(u)
        return float((q[0] - p[0]) ** 2 + (q[1] - p[1]) ** 2)

    result = minimize_scalar(dist, bounds=(lo, hi), method="bounded",
                             options={"xatol": 1e-12})
    u = float(result.x) if dist(result.x) <= dist_sq[i] else float(params[i])
    if is_enabled("sketch_debug"):
        logger.debug(f"[INTERSECT] Projektion {point} → u={u:.9f} auf {curve!r}")
    return _normalize(curve, u)


def distance_to_curve(curve: Curve2D, point: Point2D) -> float:
    return curve.point_at(closest_parameter(curve, point)).distance_to(point)


def _segment_crossings(a: np.ndarray, b: np.ndarray) -> List[Tuple[int, float, int, float]]:
    """Schnitte aller Segmente von Polygon a mit allen von Polygon b."""
    if len(a) < 2 or len(b) < 2:
        return []
    p0, r = a[:-1], a[1:] - a[:-1]            # (n, 2)
    q0, s = b[:-1], b[1:] - b[:-1]            # (m, 2)

    denom = r[:, None, 0] * s[None, :, 1] - r[:, None, 1] * s[None, :, 0]
    qp = q0[None, :, :] - p0[:, None, :]      # (n, m, 2)
    t_num = qp[..., 0] * s[None, :, 1] - qp[..., 1] * s[None, :, 0]
    u_num = qp[..., 0] * r[:, None, 1] - qp[..., 1] * r[:, None, 0]

    valid = np.abs(denom) > 1e-14
    safe = np.where(valid, denom, 1.0)
    t = t_num / safe
    u = u_num / safe
    slack = 1e-9
    hit = valid & (t >= -slack) & (t <= 1 + slack) & (u >= -slack) & (u <= 1 + slack)

    return [(int(i), float(t[i, j]), int(j), float(u[i, j])) for i, j in zip(*np.nonzero(hit))]


def _clamp(curve: Curve2D, u: float) -> float:
    if curve.is_closed:
        return u
    return min(max(u, curve.first_parameter), curve.last_parameter)


def _refine(c1: Curve2D, u1: float, c2: Curve2D, u2: float) -> Tuple[float, float, float]:
    """Newton auf F(u1, u2) = c1(u1) - c2(u2)."""
    for _ in range(30):
        f = c1.value(u1) - c2.value(u2)
        if float(np.hypot(*f)) < 1e-13:
            break
        jac = np.column_stack([c1.derivative(u1), -c2.derivative(u2)])
        if abs(np.linalg.det(jac)) < 1e-14:
            break
        step = np.linalg.solve(jac, -f)
        u1 = _clamp(c1, u1 + step[0])
        u2 = _clamp(c2, u2 + step[1])
        if abs(step[0]) + abs(step[1]) < 1e-15:
            break
    residual = float(np.hypot(*(c1.value(u1) - c2.value(u2))))
    return u1, u2, residual


def _endpoint_pos(curve: Curve2D, point: Point2D, tolerance: float) -> PointPos:
    if curve.is_closed or curve.geometry_type == GeometryType.POINT:
        return PointPos.NONE
    if curve.start_point.distance_to(point) <= tolerance:
        return PointPos.START
    if curve.end_point.distance_to(point) <= tolerance:
        return PointPos.END
    return PointPos.NONE


def curve_intersections(target: Curve2D, other: Curve2D,
                        tolerance: Optional[float] = None) -> List[Intersection]:
    """
    Schnittpunkte von `target` mit `other`, sortiert nach Parameter auf `target`.

    Args:
        target: Kurve, auf der die Parameter bestimmt werden
        other: Schneidende Kurve
        tolerance: Maximaler Abstand für Treffer (Default: SKETCH_COINCIDENT)
    """
    tol = Tolerances.SKETCH_COINCIDENT if tolerance is None else tolerance
    found: List[Intersection] = []

    def add(u: float, v: float):
        u = _normalize(target, u)
        pt = target.point_at(u)
        for existing in found:
            if existing.point.distance_to(pt) <= tol:
                return
        found.append(Intersection(u, pt, v, _endpoint_pos(other, pt, tol)))

    # Endpunkte der schneidenden Kurve (T-Stöße)
    if not other.is_closed:
        for v in (other.first_parameter, other.last_parameter):
            end_pt = other.point_at(v)
            u = closest_parameter(target, end_pt)
            if target.point_at(u).distance_to(end_pt) <= tol:
                add(u, v)

    # Echte Kreuzungen über die Polygone
    params_a = target.sample_parameters()
    params_b = other.sample_parameters()
    crossings = _segment_crossings(target.values(params_a), other.values(params_b))
    for i, s, j, t in crossings:
        u0 = params_a[i] + s * (params_a[i + 1] - params_a[i])
        v0 = params_b[j] + t * (params_b[j + 1] - params_b[j])
        u, v, residual = _refine(target, u0, other, v0)
        if residual <= Tolerances.SKETCH_INTERSECTION:
            add(u, v)
        elif is_enabled("sketch_debug"):
            logger.debug(f"[INTERSECT] Kandidat verworfen (Residuum {residual:.3e})")

    found.sort(key=lambda x: x.param)
    return found
