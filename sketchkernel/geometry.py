"""
SketchKernel - Geometrie-Primitives
===================================

Punkte, Linien, Kegelschnitte und deren Bögen mit Parameterdarstellung.
B-Splines liegen in bspline.py.

Parametrisierungen:
    Linie:      S + u·(E - S),                 u ∈ [0, 1]
    Kreis:      C + r·(cos u, sin u),          u ∈ [0, 2π)
    Ellipse:    C + a·cos u·X + b·sin u·Y      (X = Hauptachse)
    Hyperbel:   C + a·cosh u·X + b·sinh u·Y
    Parabel:    V + u²/(4f)·X + u·Y
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple
import copy
import math

import numpy as np

from config.tolerances import Tolerances
from .geo_enum import PointPos

TWO_PI = 2.0 * math.pi


class GeometryType(Enum):
    """Geometrie-Typen"""
    POINT = auto()
    LINE = auto()
    CIRCLE = auto()
    ELLIPSE = auto()
    ARC = auto()
    ELLIPSE_ARC = auto()
    HYPERBOLA_ARC = auto()
    PARABOLA_ARC = auto()
    BSPLINE = auto()


@dataclass
class Point2D:
    """2D-Punkt (Wert-Typ)"""
    x: float = 0.0
    y: float = 0.0

    def __post_init__(self):
        # NumPy-Skalare sofort in native Floats umwandeln
        self.x = float(self.x)
        self.y = float(self.y)

    @classmethod
    def from_array(cls, values) -> 'Point2D':
        return cls(values[0], values[1])

    def distance_to(self, other: 'Point2D') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def midpoint(self, other: 'Point2D') -> 'Point2D':
        return Point2D((self.x + other.x) / 2, (self.y + other.y) / 2)

    def is_close(self, other: 'Point2D', tolerance: float = Tolerances.COMPARE_POINT) -> bool:
        return self.distance_to(other) <= tolerance

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    def to_dict(self) -> dict:
        return {"type": "Point2D", "x": self.x, "y": self.y}

    def __repr__(self):
        return f"P({self.x:.4f}, {self.y:.4f})"


def _frame(angle: float) -> Tuple[np.ndarray, np.ndarray]:
    """Lokales Achsensystem (X = Hauptachse, Y = Nebenachse)."""
    c, s = math.cos(angle), math.sin(angle)
    return np.array([c, s]), np.array([-s, c])


class Curve2D:
    """
    Gemeinsame Schnittstelle aller Sketch-Kurven.

    Unterklassen liefern den Parameterbereich und die vektorisierte
    Auswertung `values()`. Alles andere (Ableitung, Endpunkte, Abtastung)
    ist darauf aufgebaut.
    """
    geometry_type: GeometryType = None

    @property
    def first_parameter(self) -> float:
        raise NotImplementedError

    @property
    def last_parameter(self) -> float:
        raise NotImplementedError

    @property
    def is_closed(self) -> bool:
        return False

    @property
    def period(self) -> Optional[float]:
        if self.is_closed:
            return self.last_parameter - self.first_parameter
        return None

    def values(self, params) -> np.ndarray:
        """Kurvenpunkte für ein Array von Parametern, Shape (N, 2)."""
        raise NotImplementedError

    def value(self, u: float) -> np.ndarray:
        return self.values(np.array([u], dtype=float))[0]

    def point_at(self, u: float) -> Point2D:
        return Point2D.from_array(self.value(u))

    def derivative(self, u: float) -> np.ndarray:
        """Erste Ableitung (zentrale Differenz, am Rand einseitig)."""
        first, last = self.first_parameter, self.last_parameter
        h = 1e-6 * max(1.0, last - first)
        lo, hi = u - h, u + h
        if not self.is_closed:
            lo, hi = max(lo, first), min(hi, last)
        if hi - lo < Tolerances.EPSILON_MATH:
            return np.zeros(2)
        return (self.value(hi) - self.value(lo)) / (hi - lo)

    @property
    def start_point(self) -> Point2D:
        return self.point_at(self.first_parameter)

    @property
    def end_point(self) -> Point2D:
        return self.point_at(self.last_parameter)

    def sample_parameters(self, count: Optional[int] = None) -> np.ndarray:
        count = count or Tolerances.SKETCH_SAMPLES_PER_CURVE
        return np.linspace(self.first_parameter, self.last_parameter, count + 1)

    def get_point(self, pos: PointPos) -> Optional[Point2D]:
        """Benannter Punkt; None wenn für diesen Kurventyp undefiniert."""
        if pos == PointPos.START:
            return self.start_point
        if pos == PointPos.END:
            return self.end_point
        return None

    def trimmed(self, u0: float, u1: float) -> 'Curve2D':
        """Teilstück [u0, u1] als eigenständige offene Kurve."""
        raise ValueError(f"{type(self).__name__} kann nicht unterteilt werden")

    def copy(self) -> 'Curve2D':
        return copy.deepcopy(self)


@dataclass
class SketchPoint2D(Curve2D):
    """Einzelner Punkt als Sketch-Geometrie"""
    point: Point2D
    construction: bool = False
    internal: bool = False

    geometry_type = GeometryType.POINT

    @property
    def first_parameter(self) -> float:
        return 0.0

    @property
    def last_parameter(self) -> float:
        return 0.0

    def values(self, params) -> np.ndarray:
        params = np.asarray(params, dtype=float)
        return np.tile(self.point.as_array(), (params.size, 1))

    def get_point(self, pos: PointPos) -> Optional[Point2D]:
        return Point2D(self.point.x, self.point.y)

    def __repr__(self):
        return f"SketchPoint({self.point})"


@dataclass
class Line2D(Curve2D):
    """2D-Linie zwischen zwei Punkten"""
    start: Point2D
    end: Point2D
    construction: bool = False
    internal: bool = False

    geometry_type = GeometryType.LINE

    @property
    def first_parameter(self) -> float:
        return 0.0

    @property
    def last_parameter(self) -> float:
        return 1.0

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    @property
    def start_point(self) -> Point2D:
        return Point2D(self.start.x, self.start.y)

    @property
    def end_point(self) -> Point2D:
        return Point2D(self.end.x, self.end.y)

    def values(self, params) -> np.ndarray:
        u = np.asarray(params, dtype=float).reshape(-1, 1)
        s, e = self.start.as_array(), self.end.as_array()
        return s + u * (e - s)

    def derivative(self, u: float) -> np.ndarray:
        return self.end.as_array() - self.start.as_array()

    def sample_parameters(self, count: Optional[int] = None) -> np.ndarray:
        # Eine Strecke ist ihr eigenes Polygon
        return np.array([0.0, 1.0])

    def trimmed(self, u0: float, u1: float) -> 'Line2D':
        return Line2D(self.point_at(u0), self.point_at(u1), construction=self.construction)

    def __repr__(self):
        return f"Line({self.start} → {self.end})"


@dataclass
class Circle2D(Curve2D):
    """Vollkreis"""
    center: Point2D
    radius: float
    construction: bool = False
    internal: bool = False

    geometry_type = GeometryType.CIRCLE

    @property
    def first_parameter(self) -> float:
        return 0.0

    @property
    def last_parameter(self) -> float:
        return TWO_PI

    @property
    def is_closed(self) -> bool:
        return True

    def values(self, params) -> np.ndarray:
        u = np.asarray(params, dtype=float)
        c = self.center.as_array()
        return c + self.radius * np.column_stack([np.cos(u), np.sin(u)])

    def get_point(self, pos: PointPos) -> Optional[Point2D]:
        if pos in (PointPos.START, PointPos.END):
            return Point2D(self.center.x + self.radius, self.center.y)
        if pos == PointPos.MID:
            return Point2D(self.center.x, self.center.y)
        return None

    def trimmed(self, u0: float, u1: float) -> 'Arc2D':
        return Arc2D(Point2D(self.center.x, self.center.y), self.radius, u0, u1,
                     construction=self.construction)

    def __repr__(self):
        return f"Circle(c={self.center}, r={self.radius:.4f})"


@dataclass
class Arc2D(Curve2D):
    """Kreisbogen, Winkel im Bogenmaß gegen den Uhrzeigersinn"""
    center: Point2D
    radius: float
    start_angle: float
    end_angle: float
    construction: bool = False
    internal: bool = False

    geometry_type = GeometryType.ARC

    def __post_init__(self):
        if self.end_angle < self.start_angle:
            self.end_angle += TWO_PI * math.ceil((self.start_angle - self.end_angle) / TWO_PI)

    @property
    def first_parameter(self) -> float:
        return self.start_angle

    @property
    def last_parameter(self) -> float:
        return self.end_angle

    @property
    def sweep_angle(self) -> float:
        return self.end_angle - self.start_angle

    def values(self, params) -> np.ndarray:
        u = np.asarray(params, dtype=float)
        c = self.center.as_array()
        return c + self.radius * np.column_stack([np.cos(u), np.sin(u)])

    def get_point(self, pos: PointPos) -> Optional[Point2D]:
        if pos == PointPos.MID:
            return Point2D(self.center.x, self.center.y)
        return super().get_point(pos)

    def trimmed(self, u0: float, u1: float) -> 'Arc2D':
        return Arc2D(Point2D(self.center.x, self.center.y), self.radius, u0, u1,
                     construction=self.construction)

    def __repr__(self):
        return (f"Arc(c={self.center}, r={self.radius:.4f}, "
                f"{math.degrees(self.start_angle):.1f}°→{math.degrees(self.end_angle):.1f}°)")


@dataclass
class Ellipse2D(Curve2D):
    """Vollellipse; `angle` ist die Richtung der Hauptachse (Bogenmaß)"""
    center: Point2D
    major_radius: float
    minor_radius: float
    angle: float = 0.0
    construction: bool = False
    internal: bool = False

    geometry_type = GeometryType.ELLIPSE

    @property
    def first_parameter(self) -> float:
        return 0.0

    @property
    def last_parameter(self) -> float:
        return TWO_PI

    @property
    def is_closed(self) -> bool:
        return True

    @property
    def focal_distance(self) -> float:
        return math.sqrt(max(self.major_radius ** 2 - self.minor_radius ** 2, 0.0))

    def axes(self) -> Tuple[np.ndarray, np.ndarray]:
        return _frame(self.angle)

    def focus1(self) -> Point2D:
        x_dir, _ = self.axes()
        return Point2D.from_array(self.center.as_array() + self.focal_distance * x_dir)

    def focus2(self) -> Point2D:
        x_dir, _ = self.axes()
        return Point2D.from_array(self.center.as_array() - self.focal_distance * x_dir)

    def values(self, params) -> np.ndarray:
        return _ellipse_values(self, params)

    def get_point(self, pos: PointPos) -> Optional[Point2D]:
        if pos in (PointPos.START, PointPos.END):
            return self.point_at(0.0)
        if pos == PointPos.MID:
            return Point2D(self.center.x, self.center.y)
        return None

    def trimmed(self, u0: float, u1: float) -> 'EllipseArc2D':
        return EllipseArc2D(Point2D(self.center.x, self.center.y), self.major_radius,
                            self.minor_radius, self.angle, u0, u1,
                            construction=self.construction)

    def __repr__(self):
        return f"Ellipse(c={self.center}, a={self.major_radius:.4f}, b={self.minor_radius:.4f})"


@dataclass
class EllipseArc2D(Curve2D):
    """Ellipsenbogen"""
    center: Point2D
    major_radius: float
    minor_radius: float
    angle: float
    start_param: float
    end_param: float
    construction: bool = False
    internal: bool = False

    geometry_type = GeometryType.ELLIPSE_ARC

    def __post_init__(self):
        if self.end_param < self.start_param:
            self.end_param += TWO_PI * math.ceil((self.start_param - self.end_param) / TWO_PI)

    @property
    def first_parameter(self) -> float:
        return self.start_param

    @property
    def last_parameter(self) -> float:
        return self.end_param

    focal_distance = Ellipse2D.focal_distance
    axes = Ellipse2D.axes
    focus1 = Ellipse2D.focus1
    focus2 = Ellipse2D.focus2

    def values(self, params) -> np.ndarray:
        return _ellipse_values(self, params)

    def get_point(self, pos: PointPos) -> Optional[Point2D]:
        if pos == PointPos.MID:
            return Point2D(self.center.x, self.center.y)
        return super().get_point(pos)

    def trimmed(self, u0: float, u1: float) -> 'EllipseArc2D':
        return EllipseArc2D(Point2D(self.center.x, self.center.y), self.major_radius,
                            self.minor_radius, self.angle, u0, u1,
                            construction=self.construction)


def _ellipse_values(ellipse, params) -> np.ndarray:
    u = np.asarray(params, dtype=float).reshape(-1, 1)
    x_dir, y_dir = ellipse.axes()
    return (ellipse.center.as_array()
            + ellipse.major_radius * np.cos(u) * x_dir
            + ellipse.minor_radius * np.sin(u) * y_dir)


@dataclass
class HyperbolaArc2D(Curve2D):
    """Hyperbelbogen (rechter Ast bezogen auf die Hauptachse)"""
    center: Point2D
    major_radius: float
    minor_radius: float
    angle: float
    start_param: float
    end_param: float
    construction: bool = False
    internal: bool = False

    geometry_type = GeometryType.HYPERBOLA_ARC

    def __post_init__(self):
        if self.start_param > self.end_param:
            raise ValueError(f"Hyperbelbogen: Parameterbereich [{self.start_param}, {self.end_param}] umgekehrt")

    @property
    def first_parameter(self) -> float:
        return self.start_param

    @property
    def last_parameter(self) -> float:
        return self.end_param

    @property
    def focal_distance(self) -> float:
        return math.hypot(self.major_radius, self.minor_radius)

    def axes(self) -> Tuple[np.ndarray, np.ndarray]:
        return _frame(self.angle)

    def focus(self) -> Point2D:
        x_dir, _ = self.axes()
        return Point2D.from_array(self.center.as_array() + self.focal_distance * x_dir)

    def values(self, params) -> np.ndarray:
        u = np.asarray(params, dtype=float).reshape(-1, 1)
        x_dir, y_dir = self.axes()
        return (self.center.as_array()
                + self.major_radius * np.cosh(u) * x_dir
                + self.minor_radius * np.sinh(u) * y_dir)

    def get_point(self, pos: PointPos) -> Optional[Point2D]:
        if pos == PointPos.MID:
            return Point2D(self.center.x, self.center.y)
        return super().get_point(pos)

    def trimmed(self, u0: float, u1: float) -> 'HyperbolaArc2D':
        return HyperbolaArc2D(Point2D(self.center.x, self.center.y), self.major_radius,
                              self.minor_radius, self.angle, u0, u1,
                              construction=self.construction)


@dataclass
class ParabolaArc2D(Curve2D):
    """Parabelbogen; `vertex` ist der Scheitel, `angle` die Richtung der Achse"""
    vertex: Point2D
    focal_length: float
    angle: float
    start_param: float
    end_param: float
    construction: bool = False
    internal: bool = False

    geometry_type = GeometryType.PARABOLA_ARC

    def __post_init__(self):
        if self.start_param > self.end_param:
            raise ValueError(f"Parabelbogen: Parameterbereich [{self.start_param}, {self.end_param}] umgekehrt")

    @property
    def first_parameter(self) -> float:
        return self.start_param

    @property
    def last_parameter(self) -> float:
        return self.end_param

    def axes(self) -> Tuple[np.ndarray, np.ndarray]:
        return _frame(self.angle)

    def focus(self) -> Point2D:
        x_dir, _ = self.axes()
        return Point2D.from_array(self.vertex.as_array() + self.focal_length * x_dir)

    def values(self, params) -> np.ndarray:
        u = np.asarray(params, dtype=float).reshape(-1, 1)
        x_dir, y_dir = self.axes()
        return (self.vertex.as_array()
                + (u * u) / (4.0 * self.focal_length) * x_dir
                + u * y_dir)

    def get_point(self, pos: PointPos) -> Optional[Point2D]:
        if pos == PointPos.MID:
            return Point2D(self.vertex.x, self.vertex.y)
        return super().get_point(pos)

    def trimmed(self, u0: float, u1: float) -> 'ParabolaArc2D':
        return ParabolaArc2D(Point2D(self.vertex.x, self.vertex.y), self.focal_length,
                             self.angle, u0, u1, construction=self.construction)


# Kurven mit Mittelpunkt, deren Teilstücke konzentrisch bleiben müssen
CENTERED_ARC_TYPES = (GeometryType.ARC, GeometryType.ELLIPSE_ARC)


def get_point(curve: Curve2D, pos: PointPos) -> Optional[Point2D]:
    """Benannter Punkt einer Kurve (start/end/mid), None wenn undefiniert."""
    return curve.get_point(pos)
