"""
SketchKernel - Base Classes for Sketch Operations
=================================================

Abstrakte Basisklasse und Ergebnis-Typ für Split/Trim/Join.

Geometrische Vorbedingungen (Punkt nicht auf der Kurve, kein Schnitt)
sind weiche Fehler und werden als OperationResult gemeldet, nicht als
Exception. Ungültige GeoIds bleiben harte Fehler (GeoIdOutOfRange).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, TYPE_CHECKING
from enum import Enum, auto
import uuid

from loguru import logger

from ..constraints import (
    Constraint, ConstraintType, make_coincident, make_point_on_object,
)
from ..geo_enum import PointPos

if TYPE_CHECKING:
    from ..intersection import Intersection
    from ..sketch import Sketch


class ResultStatus(Enum):
    """Status einer Operation."""
    SUCCESS = auto()
    WARNING = auto()  # Erfolgreich, aber mit Einschränkungen
    NO_TARGET = auto()  # Kein gültiger Punkt auf der Kurve
    NO_INTERSECTIONS = auto()  # Keine Schnittpunkte
    ERROR = auto()


@dataclass
class OperationResult:
    """
    Strukturiertes Ergebnis einer Sketch-Operation.

    `data` enthält bei Erfolg die GeoIds der entstandenen Kurven.
    """
    status: ResultStatus
    message: str = ""
    data: Any = None

    @property
    def success(self) -> bool:
        return self.status in (ResultStatus.SUCCESS, ResultStatus.WARNING)

    @property
    def is_error(self) -> bool:
        return self.status == ResultStatus.ERROR

    @property
    def code(self) -> int:
        """0 bei Erfolg, -1 sonst."""
        return 0 if self.success else -1

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> 'OperationResult':
        return cls(ResultStatus.SUCCESS, message, data)

    @classmethod
    def warning(cls, message: str, data: Any = None) -> 'OperationResult':
        return cls(ResultStatus.WARNING, message, data)

    @classmethod
    def no_target(cls, message: str = "Kein gültiger Punkt auf der Kurve") -> 'OperationResult':
        return cls(ResultStatus.NO_TARGET, message)

    @classmethod
    def no_intersections(cls, message: str = "Keine Schnittpunkte") -> 'OperationResult':
        return cls(ResultStatus.NO_INTERSECTIONS, message)

    @classmethod
    def error(cls, message: str) -> 'OperationResult':
        return cls(ResultStatus.ERROR, message)


# Kantenbezogene Constraints, die beim Teilen auf das neue Stück kopiert werden
TRANSFERABLE_EDGE_TYPES = {
    ConstraintType.HORIZONTAL,
    ConstraintType.VERTICAL,
    ConstraintType.PARALLEL,
    ConstraintType.PERPENDICULAR,
    ConstraintType.RADIUS,
    ConstraintType.DIAMETER,
}


class SketchOperation(ABC):
    """
    Abstrakte Basisklasse für Sketch-Operationen.

    Jede Operation hat:
    - Referenz auf den Sketch
    - execute() Methode
    - Strukturiertes Ergebnis
    """

    log_tag = "SKETCH"

    def __init__(self, sketch: 'Sketch'):
        self.sketch = sketch
        self._last_result: Optional[OperationResult] = None

    @property
    def last_result(self) -> Optional[OperationResult]:
        """Letztes Ergebnis der Operation."""
        return self._last_result

    @abstractmethod
    def execute(self, *args, **kwargs) -> OperationResult:
        """
        Führt die Operation aus.

        Returns:
            OperationResult mit Status und Details
        """

    def _finish(self, result: OperationResult) -> OperationResult:
        self._last_result = result
        self.sketch.last_operation_result = result
        if result.success:
            logger.debug(f"[{self.log_tag}] {result.message}")
        else:
            logger.warning(f"[{self.log_tag}] {result.status.name}: {result.message}")
        return result

    # ------------------------------------------------------------------
    # Constraint-Umverdrahtung
    # ------------------------------------------------------------------

    def _move_point_constraints(self, geo_id: int, pos: PointPos,
                                new_geo_id: int, new_pos: PointPos) -> int:
        """Hängt alle Referenzen auf (geo_id, pos) auf (new_geo_id, new_pos) um."""
        moved = 0
        for constraint in self.sketch.constraints:
            if constraint.is_internal_alignment:
                continue
            for slot, pos_slot in (("first", "first_pos"), ("second", "second_pos"),
                                   ("third", "third_pos")):
                if getattr(constraint, slot) == geo_id and getattr(constraint, pos_slot) == pos:
                    setattr(constraint, slot, new_geo_id)
                    setattr(constraint, pos_slot, new_pos)
                    moved += 1
        return moved

    def _drop_point_constraints(self, geo_id: int, positions) -> int:
        """Entfernt Constraints auf Punkten, die es nach der Operation nicht mehr gibt."""
        doomed = [
            index for index, constraint in enumerate(self.sketch.constraints)
            if not constraint.is_internal_alignment
            and any(constraint.involves(geo_id, pos) for pos in positions)
        ]
        if doomed:
            self.sketch.del_constraints(doomed)
        return len(doomed)

    def _duplicate_edge_constraints(self, geo_id: int, new_geo_id: int) -> int:
        """Kopiert übertragbare Kanten-Constraints von geo_id auf new_geo_id."""
        clones: List[Constraint] = []
        for constraint in self.sketch.constraints:
            if constraint.type not in TRANSFERABLE_EDGE_TYPES:
                continue
            if not constraint.involves(geo_id, PointPos.NONE):
                continue
            clone = constraint.copy()
            clone.id = str(uuid.uuid4())[:8]
            if clone.first == geo_id:
                clone.first = new_geo_id
            elif clone.second == geo_id:
                clone.second = new_geo_id
            clones.append(clone)
        if clones:
            self.sketch.add_constraints(clones)
            logger.debug(f"[{self.log_tag}] {len(clones)} Constraints auf neues Segment übertragen")
        return len(clones)

    def _bound_constraint(self, geo_id: int, pos: PointPos, cutter_id: int,
                          hit: 'Intersection') -> Constraint:
        """Coincident am Endpunkt der schneidenden Kurve, sonst PointOnObject."""
        if hit.at_other_endpoint:
            return make_coincident(geo_id, pos, cutter_id, hit.other_pos)
        return make_point_on_object(geo_id, pos, cutter_id)

    def _release_internal_geometry(self, geo_id: int) -> int:
        """
        Zieht interne Hilfsgeometrie zurück, bevor sich die Pole ändern.

        Noch benutzte Hilfsgeometrie bleibt als normale Konstruktions-
        geometrie stehen, ihre Ausrichtung wird entfernt.

        Returns:
            Die (ggf. verschobene) GeoId der Kurve.
        """
        geo_id = self.sketch.delete_unused_internal_geometry_and_update_geo_id(geo_id)
        self.sketch.detach_internal_geometry(geo_id)
        return geo_id
