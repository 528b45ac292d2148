"""
SketchKernel - Sketch
=====================

Besitzt Geometrie-, Extern- und Constraint-Speicher und hält sie über
alle Strukturänderungen konsistent (Umnummerierung, interne Geometrie,
Split/Trim/Join, Knoten-Editor).

Usage:
    sketch = Sketch("Skizze")
    line = sketch.add_geometry(Line2D(Point2D(0, 0), Point2D(10, 0)))
    sketch.add_constraint(make_horizontal(line))
    sketch.split(line, Point2D(5, 0))
"""

from typing import Iterable, List, Optional, Tuple, Union
import math
import re

from loguru import logger

from .angle_expression import normalize_expression, reverse_angle_constraint_expression
from .constraints import Constraint, ConstraintType, alignment_supported
from .exceptions import GeoIdOutOfRange
from .geo_enum import GeoEnum, PointPos, external_index, is_external_geo_id
from .geometry import Curve2D, GeometryType, Line2D, Point2D
from .geometry_store import GeometryStore
from .internal_geometry import InternalGeometrySynthesizer
from .operations.base import OperationResult
from .operations.join import JoinOperation
from .operations.knots import BSplineKnotEditor
from .operations.split import SplitOperation
from .operations.trim import TrimOperation
from . import renumbering

_SHAPE_TYPE = re.compile(r"^(Edge|Vertex|ExternalEdge)([1-9][0-9]*)$")

_ARC_TYPES = (
    GeometryType.ARC, GeometryType.ELLIPSE_ARC,
    GeometryType.HYPERBOLA_ARC, GeometryType.PARABOLA_ARC,
)


class Sketch:
    """2D-Skizze: Kurven plus Constraint-Graph."""

    def __init__(self, name: str = "Sketch"):
        self.name = name
        self._geometry = GeometryStore("geometry")
        self._external = GeometryStore("external")
        self._constraints: List[Constraint] = []
        self._internal = InternalGeometrySynthesizer(self)
        self.last_operation_result: Optional[OperationResult] = None

    # ==================================================================
    # Geometrie
    # ==================================================================

    def add_geometry(self, curve: Curve2D, construction: Optional[bool] = None) -> int:
        """Hängt eine Kurve an und liefert ihre GeoId."""
        if construction is not None:
            curve.construction = construction
        geo_id = self._geometry.add(curve)
        logger.debug(f"[SKETCH] GeoId {geo_id}: {curve!r}")
        return geo_id

    def add_geometries(self, curves: Iterable[Curve2D], construction: Optional[bool] = None) -> List[int]:
        return [self.add_geometry(curve, construction) for curve in curves]

    def get_geometry(self, geo_id: int) -> Curve2D:
        if geo_id >= 0:
            return self._geometry.get(geo_id)
        if geo_id == GeoEnum.H_AXIS:
            return Line2D(Point2D(0, 0), Point2D(1, 0), construction=True)
        if geo_id == GeoEnum.V_AXIS:
            return Line2D(Point2D(0, 0), Point2D(0, 1), construction=True)
        if is_external_geo_id(geo_id):
            return self._external.get(external_index(geo_id))
        raise GeoIdOutOfRange(f"GeoId {geo_id} existiert nicht", geo_id)

    def replace_geometry(self, geo_id: int, curve: Curve2D) -> None:
        """Ersetzt die Kurve an geo_id; Tag und Constraints bleiben."""
        self._geometry.replace(geo_id, curve)

    @property
    def geometries(self) -> List[Curve2D]:
        return list(self._geometry)

    def geometry_count(self) -> int:
        return len(self._geometry)

    def get_highest_curve_index(self) -> int:
        return self._geometry.highest_index

    def get_geometry_tag(self, geo_id: int) -> int:
        return self._geometry.tag_of(geo_id)

    def get_geo_id_from_tag(self, tag: int) -> int:
        geo_id = self._geometry.index_of_tag(tag)
        return GeoEnum.GEO_UNDEF if geo_id is None else geo_id

    def del_geometry(self, geo_id: int, delete_internal: bool = True) -> None:
        self.del_geometries([geo_id], delete_internal)

    def del_geometries(self, geo_ids: Iterable[int], delete_internal: bool = True) -> None:
        """
        Löscht mehrere Kurven in einem Schritt und nummeriert die
        Constraints einmal um. Constraints auf gelöschter Geometrie fallen weg.
        """
        doomed = set()
        for geo_id in geo_ids:
            self._geometry.tag_of(geo_id)
            doomed.add(geo_id)
        if delete_internal:
            for geo_id in list(doomed):
                doomed.update(c.first for _, c in self._internal.alignments(geo_id))

        mapping = self._geometry.delete(doomed)
        self._constraints = renumbering.remap_constraints(self._constraints, mapping)
        logger.debug(f"[SKETCH] {len(doomed)} Kurve(n) gelöscht: {sorted(doomed)}")

    # ==================================================================
    # Externe Geometrie
    # ==================================================================

    def add_external_geometry(self, curve: Curve2D) -> int:
        """Referenzkurve; GeoId zählt ab REF_EXT abwärts."""
        curve.construction = True
        index = self._external.add(curve)
        return GeoEnum.REF_EXT - index

    def del_external_geometry(self, geo_id: int) -> None:
        if not is_external_geo_id(geo_id):
            raise GeoIdOutOfRange(f"GeoId {geo_id} ist keine externe Geometrie", geo_id)
        self._external.delete([external_index(geo_id)])
        kept = []
        for constraint in self._constraints:
            shifted = renumbering.get_constraint_after_deleting_geo(constraint, geo_id)
            if shifted is not None:
                kept.append(shifted)
        self._constraints = kept

    def get_external_geometry_count(self) -> int:
        return len(self._external)

    @property
    def external_geometries(self) -> List[Tuple[int, Curve2D]]:
        return [(GeoEnum.REF_EXT - index, curve) for index, curve in self._external.items()]

    # ==================================================================
    # Punkte und Shape-Referenzen
    # ==================================================================

    def get_point(self, geometry: Union[int, Curve2D], pos: PointPos) -> Optional[Point2D]:
        """Benannter Punkt; None wenn für den Kurventyp undefiniert."""
        curve = self.get_geometry(geometry) if isinstance(geometry, int) else geometry
        return curve.get_point(pos)

    def _vertices(self) -> List[Tuple[int, PointPos]]:
        vertices = []
        for geo_id, curve in self._geometry.items():
            gtype = curve.geometry_type
            if gtype == GeometryType.POINT:
                vertices.append((geo_id, PointPos.START))
            elif gtype in (GeometryType.LINE, GeometryType.BSPLINE):
                vertices += [(geo_id, PointPos.START), (geo_id, PointPos.END)]
            elif gtype in (GeometryType.CIRCLE, GeometryType.ELLIPSE):
                vertices.append((geo_id, PointPos.MID))
            elif gtype in _ARC_TYPES:
                vertices += [(geo_id, PointPos.START), (geo_id, PointPos.END), (geo_id, PointPos.MID)]
        return vertices

    def vertex_count(self) -> int:
        return len(self._vertices())

    def get_vertex_index_geo_pos(self, index: int) -> Tuple[int, PointPos]:
        """(GeoId, PointPos) des 0-basierten Vertex `index`."""
        vertices = self._vertices()
        if not 0 <= index < len(vertices):
            raise GeoIdOutOfRange(f"Vertex {index} existiert nicht", index)
        return vertices[index]

    def geo_id_from_shape_type(self, shape_type: str) -> Tuple[int, PointPos]:
        """
        Übersetzt eine Shape-Referenz ("Edge3", "Vertex1", "ExternalEdge2",
        "H_Axis", "V_Axis", "RootPoint") in (GeoId, PointPos).
        """
        if shape_type == "H_Axis":
            return GeoEnum.H_AXIS, PointPos.NONE
        if shape_type == "V_Axis":
            return GeoEnum.V_AXIS, PointPos.NONE
        if shape_type == "RootPoint":
            return GeoEnum.RT_PNT, PointPos.START

        match = _SHAPE_TYPE.match(shape_type)
        if not match:
            return GeoEnum.GEO_UNDEF, PointPos.NONE
        kind, index = match.group(1), int(match.group(2)) - 1
        if kind == "Edge":
            return index, PointPos.NONE
        if kind == "ExternalEdge":
            return GeoEnum.REF_EXT - index, PointPos.NONE
        return self.get_vertex_index_geo_pos(index)

    # ==================================================================
    # Constraints
    # ==================================================================

    @property
    def constraints(self) -> List[Constraint]:
        return self._constraints

    def constraint_count(self) -> int:
        return len(self._constraints)

    def _check_constraint_index(self, index: int) -> None:
        if not 0 <= index < len(self._constraints):
            raise GeoIdOutOfRange(f"Constraint {index} existiert nicht", index)

    def _validate_constraint(self, constraint: Constraint) -> None:
        for geo_id, _ in constraint.references():
            self.get_geometry(geo_id)
        if constraint.is_internal_alignment:
            parent = self.get_geometry(constraint.second)
            if not alignment_supported(constraint.alignment_type, parent.geometry_type):
                logger.warning(f"[SKETCH] {constraint.alignment_type.name} passt nicht zu {parent!r}")
                raise ValueError(
                    f"{constraint.alignment_type.name} ist für {parent.geometry_type.name} nicht zulässig"
                )

    def add_constraint(self, constraint: Constraint) -> int:
        """Fügt einen Constraint hinzu und liefert seinen Index."""
        self._validate_constraint(constraint)
        self._constraints.append(constraint)
        return len(self._constraints) - 1

    def add_constraints(self, constraints: Iterable[Constraint]) -> List[int]:
        constraints = list(constraints)
        for constraint in constraints:
            self._validate_constraint(constraint)
        start = len(self._constraints)
        self._constraints.extend(constraints)
        return list(range(start, len(self._constraints)))

    def get_constraint(self, index: int) -> Constraint:
        self._check_constraint_index(index)
        return self._constraints[index]

    def del_constraint(self, index: int) -> None:
        self.del_constraints([index])

    def del_constraints(self, indices: Iterable[int]) -> None:
        doomed = set(indices)
        for index in doomed:
            self._check_constraint_index(index)
        self._constraints = [c for i, c in enumerate(self._constraints) if i not in doomed]

    def purge_tombstoned_constraints(self) -> int:
        """Entfernt Constraints vom Typ NONE; liefert deren Anzahl."""
        before = len(self._constraints)
        self._constraints = [c for c in self._constraints if not c.is_tombstone]
        purged = before - len(self._constraints)
        if purged:
            logger.debug(f"[RENUMBER] {purged} Tombstone(s) entfernt")
        return purged

    def set_constraint_expression(self, index: int, expression: Optional[str]) -> None:
        """Bindet einen Ausdruck an den Wert des Constraints (None löst die Bindung)."""
        constraint = self.get_constraint(index)
        constraint.formula = None if expression is None else normalize_expression(expression)

    def get_constraint_expression(self, index: int) -> Optional[str]:
        return self.get_constraint(index).formula

    def reverse_angle_constraint_to_supplementary(self, index: int) -> None:
        """
        Dreht einen Winkel-Constraint auf den Supplementwinkel.

        Referenzen werden vertauscht, die erste Linie wird von ihrem Ende
        aus gemessen (ohne Angabe: vom Anfang). Ein gebundener Ausdruck
        wird umgeschrieben und bestimmt den Wert, sonst wird der Wert gespiegelt.
        """
        constraint = self.get_constraint(index)
        if constraint.type != ConstraintType.ANGLE:
            raise ValueError(f"Constraint {index} ist kein Winkel ({constraint.type.name})")

        constraint.first, constraint.second = constraint.second, constraint.first
        constraint.first_pos, constraint.second_pos = constraint.second_pos, constraint.first_pos
        constraint.first_pos = PointPos.END if constraint.first_pos == PointPos.START else PointPos.START

        if constraint.formula:
            self.set_constraint_expression(index, reverse_angle_constraint_expression(constraint.formula))
        elif constraint.value is not None:
            constraint.value = math.pi - constraint.value
        logger.debug(f"[ANGLE-EXPR] Constraint {index} auf Supplementwinkel gedreht: {constraint.formula}")

    # Umnummerierung (reine Funktionen, für Aufrufer mit eigener Verwaltung)
    get_constraint_after_deleting_geo = staticmethod(renumbering.get_constraint_after_deleting_geo)
    change_constraint_after_deleting_geo = staticmethod(renumbering.change_constraint_after_deleting_geo)

    # ==================================================================
    # Interne Geometrie
    # ==================================================================

    def expose_internal_geometry(self, geo_id: int) -> int:
        return self._internal.expose(geo_id)

    def has_internal_geometry(self, geo_id: int) -> bool:
        return self._internal.has_internal_geometry(geo_id)

    def get_internal_geometry_ids(self, geo_id: int) -> List[int]:
        return [c.first for _, c in self._internal.alignments(geo_id)]

    def delete_unused_internal_geometry(self, geo_id: int) -> int:
        return self._internal.delete_unused(geo_id)

    def delete_unused_internal_geometry_and_update_geo_id(self, geo_id: int) -> int:
        """Wie delete_unused_internal_geometry, liefert die neue GeoId des Elternelements."""
        tag = self.get_geometry_tag(geo_id)
        self._internal.delete_unused(geo_id)
        return self.get_geo_id_from_tag(tag)

    def detach_internal_geometry(self, geo_id: int) -> int:
        return self._internal.detach(geo_id)

    def update_internal_geometry(self, geo_id: int) -> int:
        return self._internal.resync(geo_id)

    # ==================================================================
    # Operationen
    # ==================================================================

    def split(self, geo_id: int, point: Point2D, max_distance: Optional[float] = None) -> int:
        """Teilt die Kurve am Punkt; 0 bei Erfolg, -1 sonst."""
        return SplitOperation(self).execute(geo_id, point, max_distance).code

    def trim(self, geo_id: int, point: Point2D) -> int:
        """Entfernt das Kurvenstück um `point`; 0 bei Erfolg, -1 sonst."""
        return TrimOperation(self).execute(geo_id, point).code

    def join(self, geo_id1: int, pos1: PointPos, geo_id2: int, pos2: PointPos,
             continuity: int = 0) -> int:
        """Verbindet zwei Kurven zu einem B-Spline; 0 bei Erfolg, -1 sonst."""
        return JoinOperation(self).execute(geo_id1, pos1, geo_id2, pos2, continuity).code

    def modify_bspline_knot_multiplicity(self, geo_id: int, knot_index: int, delta: int) -> None:
        BSplineKnotEditor(self).modify_multiplicity(geo_id, knot_index, delta)

    def insert_bspline_knot(self, geo_id: int, param: float, multiplicity: int = 1) -> None:
        BSplineKnotEditor(self).insert_knot(geo_id, param, multiplicity)

    def __repr__(self):
        return (f"Sketch({self.name!r}, curves={len(self._geometry)}, "
                f"external={len(self._external)}, constraints={len(self._constraints)})")
