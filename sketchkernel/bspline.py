"""
SketchKernel - B-Spline Kurven
==============================

Rationale B-Splines (NURBS) in der Knoten/Multiplizitäten-Darstellung:
- `knots`: streng steigende, unterschiedliche Knotenwerte
- `multiplicities`: parallel dazu
- nicht-periodisch: sum(mults) == poles + degree + 1 (geklemmt)
- periodisch: sum(mults[:-1]) == poles, der letzte Knoten ist der
  Umlauf des ersten (mults[0] == mults[-1])

Auswertung über scipy.interpolate.BSpline auf homogenen Koordinaten
(w·x, w·y, w). Knoten-Änderungen und Teilstücke werden per
Least-Squares-Refit auf den neuen Knotenvektor berechnet. Für
Knoteneinfügung, Gradanhebung und Teilstücke ist das exakt, beim
Entfernen eines Knotens eine Approximation.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import math

import numpy as np
from loguru import logger
from scipy.interpolate import BSpline

from config.feature_flags import is_enabled
from config.tolerances import Tolerances, param_tolerance
from .geo_enum import PointPos
from .geometry import Curve2D, GeometryType, Point2D


@dataclass
class BSpline2D(Curve2D):
    """
    NURBS-Kurve.

    Periodische Kurven werden für die Auswertung "abgerollt": der
    Koeffizientenvektor ist P_0..P_{n-1}, P_0..P_{p-1} über dem um je eine
    Periode verschobenen Knotenvektor.
    """
    poles: List[Point2D]
    knots: List[float]
    multiplicities: List[int]
    degree: int = 3
    weights: List[float] = field(default_factory=list)
    periodic: bool = False
    construction: bool = False
    internal: bool = False

    geometry_type = GeometryType.BSPLINE

    def __post_init__(self):
        self.knots = [float(k) for k in self.knots]
        self.multiplicities = [int(m) for m in self.multiplicities]
        self.poles = [Point2D(p.x, p.y) for p in self.poles]
        if not self.weights:
            self.weights = [1.0] * len(self.poles)
        self.weights = [float(w) for w in self.weights]
        self._validate()
        self._cache = None

    def _validate(self):
        n, p = len(self.poles), self.degree
        if p < 1:
            raise ValueError(f"B-Spline Grad muss >= 1 sein, ist {p}")
        if len(self.weights) != n:
            raise ValueError(f"{len(self.weights)} Gewichte für {n} Pole")
        if any(w <= 0.0 for w in self.weights):
            raise ValueError("B-Spline Gewichte müssen positiv sein")
        if len(self.knots) != len(self.multiplicities) or len(self.knots) < 2:
            raise ValueError("Knoten- und Multiplizitätsvektor müssen parallel sein (>= 2 Knoten)")
        if any(b - a <= 0.0 for a, b in zip(self.knots, self.knots[1:])):
            raise ValueError(f"Knoten nicht streng steigend: {self.knots}")
        if any(m < 1 for m in self.multiplicities):
            raise ValueError(f"Multiplizitäten müssen >= 1 sein: {self.multiplicities}")
        if any(m > p for m in self.multiplicities[1:-1]):
            raise ValueError(f"Innere Multiplizität > Grad {p}: {self.multiplicities}")

        if self.periodic:
            if self.multiplicities[0] != self.multiplicities[-1]:
                raise ValueError("Periodischer B-Spline: erste und letzte Multiplizität müssen gleich sein")
            if self.multiplicities[0] > p:
                raise ValueError(f"Periodischer B-Spline: Naht-Multiplizität > Grad {p}")
            if sum(self.multiplicities[:-1]) != n:
                raise ValueError(
                    f"Periodischer B-Spline: sum(mults[:-1])={sum(self.multiplicities[:-1])} != Pole={n}"
                )
        else:
            if self.multiplicities[0] != p + 1 or self.multiplicities[-1] != p + 1:
                raise ValueError(f"Nicht-periodischer B-Spline muss geklemmt sein (End-Multiplizität {p + 1})")
            if sum(self.multiplicities) != n + p + 1:
                raise ValueError(
                    f"B-Spline: sum(mults)={sum(self.multiplicities)} != Pole+Grad+1={n + p + 1}"
                )

    # ------------------------------------------------------------------
    # Grunddaten
    # ------------------------------------------------------------------

    def count_poles(self) -> int:
        return len(self.poles)

    def count_knots(self) -> int:
        return len(self.knots)

    @property
    def first_parameter(self) -> float:
        return self.knots[0]

    @property
    def last_parameter(self) -> float:
        return self.knots[-1]

    @property
    def is_closed(self) -> bool:
        return self.periodic

    def find_knot(self, u: float) -> Optional[int]:
        """0-basierter Index eines vorhandenen Knotens bei u, sonst None."""
        tol = param_tolerance(self.first_parameter, self.last_parameter)
        for i, k in enumerate(self.knots):
            if abs(k - u) <= tol:
                return i
        return None

    # ------------------------------------------------------------------
    # Auswertung
    # ------------------------------------------------------------------

    def _homogeneous_poles(self) -> np.ndarray:
        w = np.asarray(self.weights, dtype=float).reshape(-1, 1)
        xy = np.array([p.as_tuple() for p in self.poles], dtype=float)
        return np.hstack([xy * w, w])

    def _spline(self) -> BSpline:
        if self._cache is None:
            t, n_coef = evaluation_knots(self.knots, self.multiplicities, self.degree, self.periodic)
            coef = self._homogeneous_poles()
            if self.periodic:
                coef = coef[np.arange(n_coef) % len(self.poles)]
            self._cache = BSpline(t, coef, self.degree, extrapolate=True)
        return self._cache

    def _reduce(self, params) -> np.ndarray:
        u = np.asarray(params, dtype=float)
        first, last = self.first_parameter, self.last_parameter
        if self.periodic:
            return first + np.mod(u - first, last - first)
        return np.clip(u, first, last)

    def homogeneous_values(self, params) -> np.ndarray:
        return self._spline()(self._reduce(params)).reshape(-1, 3)

    def values(self, params) -> np.ndarray:
        h = self.homogeneous_values(params)
        return h[:, :2] / h[:, 2:3]

    def get_point(self, pos: PointPos) -> Optional[Point2D]:
        if self.periodic and pos in (PointPos.START, PointPos.END):
            return self.point_at(self.first_parameter)
        if pos == PointPos.START:
            return Point2D(self.poles[0].x, self.poles[0].y)
        if pos == PointPos.END:
            return Point2D(self.poles[-1].x, self.poles[-1].y)
        return None

    def knot_point(self, index: int) -> Point2D:
        """Kurvenpunkt am Knoten `index` (0-basiert)."""
        return self.point_at(self.knots[index])

    def sample_parameters(self, count: Optional[int] = None) -> np.ndarray:
        per_span = count or Tolerances.SKETCH_BSPLINE_SAMPLES_PER_SPAN
        params = [
            np.linspace(a, b, per_span + 1)[:-1]
            for a, b in zip(self.knots, self.knots[1:])
        ]
        params.append(np.array([self.knots[-1]]))
        return np.concatenate(params)

    # ------------------------------------------------------------------
    # Umbau
    # ------------------------------------------------------------------

    def copy_with(self, **changes) -> 'BSpline2D':
        data = dict(
            poles=[Point2D(p.x, p.y) for p in self.poles],
            knots=list(self.knots),
            multiplicities=list(self.multiplicities),
            degree=self.degree,
            weights=list(self.weights),
            periodic=self.periodic,
            construction=self.construction,
            internal=self.internal,
        )
        data.update(changes)
        return BSpline2D(**data)

    def refit(self, knots: List[float], multiplicities: List[int],
              degree: Optional[int] = None, periodic: Optional[bool] = None,
              source=None) -> 'BSpline2D':
        """
        Neuer B-Spline auf dem gegebenen Knotenvektor, der `source`
        (Default: self) im Least-Squares-Sinn approximiert.

        Die Anpassung erfolgt in homogenen Koordinaten, daher bleibt der
        Refit für rationale Kurven exakt, solange der neue Raum den alten
        enthält.
        """
        degree = self.degree if degree is None else degree
        periodic = self.periodic if periodic is None else periodic
        source = source or self.homogeneous_values

        t, n_coef = evaluation_knots(knots, multiplicities, degree, periodic)
        n_poles = sum(multiplicities[:-1]) if periodic else n_coef

        params = _fit_parameters(knots, degree)
        design = BSpline(t, np.eye(n_coef), degree, extrapolate=True)(params)
        if periodic:
            # Abgerollte Koeffizienten auf die echten Pole zurückfalten
            folded = np.zeros((len(params), n_poles))
            for col in range(n_coef):
                folded[:, col % n_poles] += design[:, col]
            design = folded

        target = source(params)
        solution, residuals, rank, _ = np.linalg.lstsq(design, target, rcond=None)
        if rank < n_poles:
            raise ValueError(f"B-Spline Refit unterbestimmt (Rang {rank} < {n_poles})")

        weights = solution[:, 2]
        if np.any(weights <= Tolerances.EPSILON_MATH):
            raise ValueError("B-Spline Refit liefert nicht-positive Gewichte")
        poles = [Point2D(x / w, y / w) for (x, y, w) in solution]

        if is_enabled("sketch_debug"):
            error = float(np.max(np.abs(design @ solution - target))) if len(target) else 0.0
            logger.debug(f"[BSPLINE] Refit auf {len(knots)} Knoten, Grad {degree}: max. Residuum {error:.3e}")

        return BSpline2D(
            poles=poles,
            knots=list(knots),
            multiplicities=list(multiplicities),
            degree=degree,
            weights=[float(w) for w in weights],
            periodic=periodic,
            construction=self.construction,
        )

    def segment(self, u0: float, u1: float) -> 'BSpline2D':
        """
        Geklemmter B-Spline über [u0, u1].

        Bei periodischen Kurven darf u1 über das Periodenende hinausgehen
        (Teilstück über die Naht).
        """
        if u1 <= u0:
            raise ValueError(f"Leeres B-Spline Teilstück [{u0}, {u1}]")
        tol = param_tolerance(self.first_parameter, self.last_parameter)
        inner: List[Tuple[float, int]] = []
        if self.periodic:
            period = self.last_parameter - self.first_parameter
            shift_lo = math.floor((u0 - self.first_parameter) / period) - 1
            shift_hi = math.ceil((u1 - self.first_parameter) / period) + 1
            for shift in range(shift_lo, shift_hi + 1):
                for k, m in zip(self.knots[:-1], self.multiplicities[:-1]):
                    kk = k + shift * period
                    if u0 + tol < kk < u1 - tol:
                        inner.append((kk, m))
        else:
            for k, m in zip(self.knots, self.multiplicities):
                if u0 + tol < k < u1 - tol:
                    inner.append((k, m))
        inner.sort()

        p = self.degree
        knots = [u0] + [k for k, _ in inner] + [u1]
        mults = [p + 1] + [min(m, p) for _, m in inner] + [p + 1]
        return self.refit(knots, mults, periodic=False)

    def trimmed(self, u0: float, u1: float) -> 'BSpline2D':
        return self.segment(u0, u1)

    def reversed(self) -> 'BSpline2D':
        """Gleiche Kurve mit umgekehrter Laufrichtung."""
        if self.periodic:
            raise ValueError("Umkehren periodischer B-Splines wird nicht unterstützt")
        a, b = self.first_parameter, self.last_parameter
        return self.copy_with(
            poles=list(reversed(self.poles)),
            weights=list(reversed(self.weights)),
            knots=[a + b - k for k in reversed(self.knots)],
            multiplicities=list(reversed(self.multiplicities)),
        )

    def elevated(self, degree: int) -> 'BSpline2D':
        """Gradanhebung; alle Multiplizitäten wachsen mit, die Stetigkeit bleibt."""
        if degree == self.degree:
            return self.copy_with()
        if degree < self.degree:
            raise ValueError(f"Grad kann nicht von {self.degree} auf {degree} gesenkt werden")
        delta = degree - self.degree
        mults = [m + delta for m in self.multiplicities]
        if not self.periodic:
            mults[0] = mults[-1] = degree + 1
        return self.refit(self.knots, mults, degree=degree)

    def __repr__(self):
        kind = "periodic" if self.periodic else "clamped"
        return (f"BSpline({kind}, deg={self.degree}, poles={len(self.poles)}, "
                f"knots={self.knots}, mults={self.multiplicities})")


def evaluation_knots(knots: List[float], multiplicities: List[int], degree: int,
                     periodic: bool) -> Tuple[np.ndarray, int]:
    """
    Vollständiger Knotenvektor für scipy und Anzahl der Koeffizienten.

    Periodisch: t_j = base[j mod n] + (j div n)·T für j = -p .. n+p.
    """
    if not periodic:
        t = np.repeat(np.asarray(knots, dtype=float), multiplicities)
        return t, len(t) - degree - 1

    base = np.repeat(np.asarray(knots[:-1], dtype=float), multiplicities[:-1])
    n = len(base)
    period = knots[-1] - knots[0]
    idx = np.arange(-degree, n + degree + 1)
    t = base[np.mod(idx, n)] + np.floor_divide(idx, n) * period
    return t, n + degree


def _fit_parameters(knots: List[float], degree: int) -> np.ndarray:
    per_span = 2 * (degree + 2)
    params = [np.linspace(a, b, per_span + 1) for a, b in zip(knots, knots[1:])]
    return np.unique(np.concatenate(params))


# ----------------------------------------------------------------------
# Konvertierung beliebiger Kurven nach B-Spline
# ----------------------------------------------------------------------

def _circular_segments(a0: float, a1: float) -> Tuple[List[np.ndarray], List[float], List[float]]:
    """
    Rationale quadratische Darstellung eines Einheitskreisbogens
    (max. 90° pro Segment). Liefert Pole, Gewichte und Knoten.
    """
    sweep = a1 - a0
    n_seg = max(1, int(math.ceil(sweep / (math.pi / 2) - 1e-9)))
    d = sweep / n_seg
    w_mid = math.cos(d / 2)

    poles = [np.array([math.cos(a0), math.sin(a0)])]
    weights = [1.0]
    knots = [a0]
    for i in range(n_seg):
        start = a0 + i * d
        mid = start + d / 2
        end = start + d
        poles.append(np.array([math.cos(mid), math.sin(mid)]) / w_mid)
        weights.append(w_mid)
        poles.append(np.array([math.cos(end), math.sin(end)]))
        weights.append(1.0)
        knots.append(end)
    return poles, weights, knots


def _conic_bspline(local_poles, weights, knots, origin, x_dir, y_dir, construction) -> BSpline2D:
    poles = [Point2D.from_array(origin + lp[0] * x_dir + lp[1] * y_dir) for lp in local_poles]
    mults = [3] + [2] * (len(knots) - 2) + [3]
    return BSpline2D(poles=poles, knots=knots, multiplicities=mults, degree=2,
                     weights=weights, construction=construction)


def to_bspline(curve: Curve2D) -> BSpline2D:
    """
    Exakte B-Spline-Darstellung einer Sketch-Kurve.

    Geschlossene Kegelschnitte werden als geschlossener, aber geklemmter
    Spline über den vollen Umlauf geliefert.
    """
    gtype = curve.geometry_type

    if gtype == GeometryType.BSPLINE:
        return curve.copy_with()

    if gtype == GeometryType.LINE:
        return BSpline2D(poles=[curve.start_point, curve.end_point], knots=[0.0, 1.0],
                         multiplicities=[2, 2], degree=1, construction=curve.construction)

    if gtype in (GeometryType.CIRCLE, GeometryType.ARC):
        a0, a1 = curve.first_parameter, curve.last_parameter
        poles, weights, knots = _circular_segments(a0, a1)
        r = curve.radius
        return _conic_bspline([p * r for p in poles], weights, knots, curve.center.as_array(),
                              np.array([1.0, 0.0]), np.array([0.0, 1.0]), curve.construction)

    if gtype in (GeometryType.ELLIPSE, GeometryType.ELLIPSE_ARC):
        a0, a1 = curve.first_parameter, curve.last_parameter
        poles, weights, knots = _circular_segments(a0, a1)
        x_dir, y_dir = curve.axes()
        scaled = [np.array([p[0] * curve.major_radius, p[1] * curve.minor_radius]) for p in poles]
        return _conic_bspline(scaled, weights, knots, curve.center.as_array(), x_dir, y_dir,
                              curve.construction)

    if gtype == GeometryType.HYPERBOLA_ARC:
        u0, u1 = curve.first_parameter, curve.last_parameter
        n_seg = max(1, int(math.ceil((u1 - u0) / 2.0)))
        d = (u1 - u0) / n_seg
        h = d / 2
        a, b = curve.major_radius, curve.minor_radius
        local = [np.array([a * math.cosh(u0), b * math.sinh(u0)])]
        weights = [1.0]
        knots = [u0]
        for i in range(n_seg):
            m = u0 + i * d + h
            end = u0 + (i + 1) * d
            local.append(np.array([a * math.cosh(m), b * math.sinh(m)]) / math.cosh(h))
            weights.append(math.cosh(h))
            local.append(np.array([a * math.cosh(end), b * math.sinh(end)]))
            weights.append(1.0)
            knots.append(end)
        x_dir, y_dir = curve.axes()
        return _conic_bspline(local, weights, knots, curve.center.as_array(), x_dir, y_dir,
                              curve.construction)

    if gtype == GeometryType.PARABOLA_ARC:
        u0, u1 = curve.first_parameter, curve.last_parameter
        f = curve.focal_length
        p0 = np.array([u0 * u0 / (4 * f), u0])
        tangent = np.array([u0 / (2 * f), 1.0])
        p1 = p0 + (u1 - u0) / 2 * tangent
        p2 = np.array([u1 * u1 / (4 * f), u1])
        x_dir, y_dir = curve.axes()
        return _conic_bspline([p0, p1, p2], [1.0, 1.0, 1.0], [u0, u1], curve.vertex.as_array(),
                              x_dir, y_dir, curve.construction)

    raise ValueError(f"{type(curve).__name__} hat keine B-Spline-Darstellung")


def join_bsplines(first: BSpline2D, second: BSpline2D,
                  joint_multiplicity: Optional[int] = None) -> BSpline2D:
    """
    Verkettet zwei geklemmte B-Splines gleichen Grades.

    `first` muss an der Verbindungsstelle enden, `second` dort beginnen.
    Der Verbindungspol ist der Mittelpunkt der beiden Endpole, die
    Parameter von `second` werden hinter `first` verschoben.

    Args:
        joint_multiplicity: Kleiner als der Grad → glatter Übergang
            (Least-Squares-Refit auf den reduzierten Knotenvektor)
    """
    if first.periodic or second.periodic:
        raise ValueError("Periodische B-Splines können nicht verkettet werden")
    if first.degree != second.degree:
        raise ValueError(f"Grad {first.degree} != {second.degree}, zuerst anheben")

    p = first.degree
    # Gewichte angleichen, damit der gemeinsame Pol ein Gewicht hat
    scale = first.weights[-1] / second.weights[0]
    offset = first.last_parameter - second.first_parameter
    joint = first.poles[-1].midpoint(second.poles[0])

    poles = first.poles[:-1] + [joint] + second.poles[1:]
    weights = first.weights + [w * scale for w in second.weights[1:]]
    knots = first.knots + [k + offset for k in second.knots[1:]]
    mults = first.multiplicities[:-1] + [p] + second.multiplicities[1:]

    joined = BSpline2D(poles=poles, knots=knots, multiplicities=mults, degree=p,
                       weights=weights, construction=first.construction)
    if joint_multiplicity is not None and joint_multiplicity < p:
        mults = list(mults)
        mults[len(first.knots) - 1] = joint_multiplicity
        joined = joined.refit(knots, mults)
    return joined
