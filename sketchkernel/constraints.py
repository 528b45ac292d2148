"""
SketchKernel - Constraint-Datensätze
====================================

Constraints referenzieren Geometrie ausschließlich über GeoIds und
PointPos. Gelöst werden sie nicht hier; die Engine pflegt nur den
Constraint-Graphen.
"""

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Iterator, Optional, Tuple
import uuid

from .geo_enum import GeoEnum, PointPos
from .geometry import GeometryType


class ConstraintType(Enum):
    """Verfügbare Constraint-Typen"""
    NONE = auto()               # Tombstone: Referenz wurde gelöscht

    # Punkt-Constraints
    COINCIDENT = auto()         # Zwei Punkte zusammen
    POINT_ON_OBJECT = auto()    # Punkt auf Kurve

    # Lagen-Constraints
    HORIZONTAL = auto()
    VERTICAL = auto()
    PARALLEL = auto()
    PERPENDICULAR = auto()
    TANGENT = auto()
    EQUAL = auto()
    SYMMETRIC = auto()

    # Maß-Constraints (Dimensionen)
    DISTANCE = auto()
    DISTANCE_X = auto()
    DISTANCE_Y = auto()
    ANGLE = auto()
    RADIUS = auto()
    DIAMETER = auto()

    # Hilfsgeometrie
    INTERNAL_ALIGNMENT = auto()
    BLOCK = auto()


class InternalAlignmentType(Enum):
    """Rolle einer internen Hilfsgeometrie am Elternelement"""
    UNDEF = auto()
    ELLIPSE_MAJOR_DIAMETER = auto()
    ELLIPSE_MINOR_DIAMETER = auto()
    ELLIPSE_FOCUS1 = auto()
    ELLIPSE_FOCUS2 = auto()
    HYPERBOLA_MAJOR = auto()
    HYPERBOLA_MINOR = auto()
    HYPERBOLA_FOCUS = auto()
    PARABOLA_FOCAL_AXIS = auto()
    PARABOLA_FOCUS = auto()
    BSPLINE_CONTROL_POINT = auto()
    BSPLINE_KNOT_POINT = auto()


_ELLIPSE_PARENTS = (GeometryType.ELLIPSE, GeometryType.ELLIPSE_ARC)

# Welche Elterntypen eine Ausrichtung tragen dürfen
ALIGNMENT_PARENT_TYPES = {
    InternalAlignmentType.ELLIPSE_MAJOR_DIAMETER: _ELLIPSE_PARENTS,
    InternalAlignmentType.ELLIPSE_MINOR_DIAMETER: _ELLIPSE_PARENTS,
    InternalAlignmentType.ELLIPSE_FOCUS1: _ELLIPSE_PARENTS,
    InternalAlignmentType.ELLIPSE_FOCUS2: _ELLIPSE_PARENTS,
    InternalAlignmentType.HYPERBOLA_MAJOR: (GeometryType.HYPERBOLA_ARC,),
    InternalAlignmentType.HYPERBOLA_MINOR: (GeometryType.HYPERBOLA_ARC,),
    InternalAlignmentType.HYPERBOLA_FOCUS: (GeometryType.HYPERBOLA_ARC,),
    InternalAlignmentType.PARABOLA_FOCAL_AXIS: (GeometryType.PARABOLA_ARC,),
    InternalAlignmentType.PARABOLA_FOCUS: (GeometryType.PARABOLA_ARC,),
    InternalAlignmentType.BSPLINE_CONTROL_POINT: (GeometryType.BSPLINE,),
    InternalAlignmentType.BSPLINE_KNOT_POINT: (GeometryType.BSPLINE,),
}


def alignment_supported(alignment: InternalAlignmentType, parent_type: GeometryType) -> bool:
    return parent_type in ALIGNMENT_PARENT_TYPES.get(alignment, ())


@dataclass
class Constraint:
    """
    Constraint mit bis zu drei (GeoId, PointPos)-Referenzen.

    Für INTERNAL_ALIGNMENT ist `first` die Hilfsgeometrie, `second` das
    Elternelement und `internal_alignment_index` der 1-basierte Pol/Knoten.
    """
    type: ConstraintType
    first: int = GeoEnum.GEO_UNDEF
    first_pos: PointPos = PointPos.NONE
    second: int = GeoEnum.GEO_UNDEF
    second_pos: PointPos = PointPos.NONE
    third: int = GeoEnum.GEO_UNDEF
    third_pos: PointPos = PointPos.NONE
    value: Optional[float] = None
    formula: Optional[str] = None  # Gebundener Ausdruck, z.B. "180 ° - (60 °)"
    alignment_type: InternalAlignmentType = InternalAlignmentType.UNDEF
    internal_alignment_index: int = -1
    driving: bool = True
    name: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    @property
    def is_tombstone(self) -> bool:
        return self.type == ConstraintType.NONE

    @property
    def is_internal_alignment(self) -> bool:
        return self.type == ConstraintType.INTERNAL_ALIGNMENT

    def geo_ids(self) -> Tuple[int, int, int]:
        return (self.first, self.second, self.third)

    def references(self) -> Iterator[Tuple[int, PointPos]]:
        """Alle gesetzten (GeoId, PointPos)-Referenzen."""
        for geo_id, pos in ((self.first, self.first_pos),
                            (self.second, self.second_pos),
                            (self.third, self.third_pos)):
            if geo_id != GeoEnum.GEO_UNDEF:
                yield geo_id, pos

    def involves(self, geo_id: int, pos: Optional[PointPos] = None) -> bool:
        return any(g == geo_id and (pos is None or p == pos) for g, p in self.references())

    def copy(self) -> 'Constraint':
        return replace(self)

    def __repr__(self):
        refs = ", ".join(f"{g}:{p.name.lower()}" for g, p in self.references())
        extra = ""
        if self.is_internal_alignment:
            extra = f", {self.alignment_type.name}#{self.internal_alignment_index}"
        elif self.value is not None:
            extra = f", {self.value}"
        return f"{self.type.name}({refs}{extra})"


# === Factory Functions ===

def make_coincident(first: int, first_pos: PointPos, second: int, second_pos: PointPos) -> Constraint:
    return Constraint(ConstraintType.COINCIDENT, first, first_pos, second, second_pos)


def make_point_on_object(point_geo: int, point_pos: PointPos, curve_geo: int) -> Constraint:
    return Constraint(ConstraintType.POINT_ON_OBJECT, point_geo, point_pos, curve_geo, PointPos.NONE)


def make_tangent(first: int, second: int,
                 first_pos: PointPos = PointPos.NONE,
                 second_pos: PointPos = PointPos.NONE) -> Constraint:
    return Constraint(ConstraintType.TANGENT, first, first_pos, second, second_pos)


def make_horizontal(geo_id: int) -> Constraint:
    return Constraint(ConstraintType.HORIZONTAL, geo_id)


def make_vertical(geo_id: int) -> Constraint:
    return Constraint(ConstraintType.VERTICAL, geo_id)


def make_parallel(first: int, second: int) -> Constraint:
    return Constraint(ConstraintType.PARALLEL, first, second=second)


def make_perpendicular(first: int, second: int) -> Constraint:
    return Constraint(ConstraintType.PERPENDICULAR, first, second=second)


def make_equal(first: int, second: int) -> Constraint:
    return Constraint(ConstraintType.EQUAL, first, second=second)


def make_radius(geo_id: int, radius: float) -> Constraint:
    return Constraint(ConstraintType.RADIUS, geo_id, value=radius)


def make_angle(first: int, second: int, angle: float, formula: Optional[str] = None) -> Constraint:
    """Winkel zwischen zwei Linien (Bogenmaß)."""
    return Constraint(ConstraintType.ANGLE, first, second=second, value=angle, formula=formula)


def make_internal_alignment(alignment: InternalAlignmentType, child: int, child_pos: PointPos,
                            parent: int, index: int = -1) -> Constraint:
    return Constraint(
        ConstraintType.INTERNAL_ALIGNMENT, child, child_pos, parent, PointPos.NONE,
        alignment_type=alignment, internal_alignment_index=index,
    )
