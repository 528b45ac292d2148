"""
SketchKernel - Split Operation
==============================

Teilt eine Kurve am Fußpunkt eines Punktes.

- Offene Kurven: erstes Stück bleibt an der GeoId, zweites wird angehängt,
  beide Enden werden per Coincident verbunden
- Geschlossene Kurven (Kreis, Ellipse, periodischer B-Spline): werden zu
  einer offenen Kurve an derselben GeoId
"""

from typing import Optional

from loguru import logger

from config.feature_flags import is_enabled
from config.tolerances import param_tolerance
from ..constraints import make_coincident
from ..geo_enum import PointPos
from ..geometry import CENTERED_ARC_TYPES, Curve2D, GeometryType, Point2D
from ..intersection import closest_parameter
from ..transaction import SketchTransaction
from .base import OperationResult, SketchOperation


class SplitOperation(SketchOperation):
    """Split einer Kurve an einem Punkt."""

    log_tag = "SPLIT"

    def execute(self, geo_id: int, point: Point2D,
                max_distance: Optional[float] = None) -> OperationResult:
        """
        Args:
            geo_id: Zu teilende Kurve (>= 0)
            point: Punkt in der Nähe der Kurve
            max_distance: Optionaler Maximalabstand des Punktes zur Kurve
        """
        curve = self.sketch.get_geometry(geo_id)
        if geo_id < 0:
            return self._finish(OperationResult.error(f"GeoId {geo_id} ist keine Sketch-Geometrie"))
        if curve.geometry_type == GeometryType.POINT:
            return self._finish(OperationResult.no_target("Punkte können nicht geteilt werden"))

        u = closest_parameter(curve, point)
        foot = curve.point_at(u)
        if max_distance is not None and foot.distance_to(point) > max_distance:
            return self._finish(OperationResult.no_target(
                f"Punkt {point} liegt {foot.distance_to(point):.4g} von der Kurve entfernt"
            ))

        first, last = curve.first_parameter, curve.last_parameter
        tol = param_tolerance(first, last)
        if not curve.is_closed and (u - first <= tol or last - u <= tol):
            return self._finish(OperationResult.no_target("Teilungspunkt liegt auf einem Kurvenende"))

        try:
            with SketchTransaction(self.sketch, "Split") as txn:
                if curve.geometry_type == GeometryType.BSPLINE:
                    geo_id = self._release_internal_geometry(geo_id)
                if curve.is_closed:
                    result = self._split_closed(geo_id, curve, u)
                else:
                    result = self._split_open(geo_id, curve, u)
                txn.commit()
        except ValueError as e:
            return self._finish(OperationResult.error(f"Split fehlgeschlagen: {e}"))

        return self._finish(result)

    def _split_closed(self, geo_id: int, curve: Curve2D, u: float) -> OperationResult:
        piece = curve.trimmed(u, u + curve.period)
        self.sketch.replace_geometry(geo_id, piece)
        # Start/Ende des geschlossenen Originals gibt es so nicht mehr
        self._drop_point_constraints(geo_id, (PointPos.START, PointPos.END))
        return OperationResult.ok(f"{type(curve).__name__} bei u={u:.6g} geöffnet", data=[geo_id])

    def _split_open(self, geo_id: int, curve: Curve2D, u: float) -> OperationResult:
        head = curve.trimmed(curve.first_parameter, u)
        tail = curve.trimmed(u, curve.last_parameter)

        self.sketch.replace_geometry(geo_id, head)
        new_id = self.sketch.add_geometry(tail)

        moved = self._move_point_constraints(geo_id, PointPos.END, new_id, PointPos.END)
        if moved:
            logger.debug(f"[SPLIT] {moved} Endpunkt-Referenz(en) auf GeoId {new_id} umgehängt")
        self._duplicate_edge_constraints(geo_id, new_id)

        added = [make_coincident(geo_id, PointPos.END, new_id, PointPos.START)]
        if curve.geometry_type in CENTERED_ARC_TYPES and is_enabled("sketch_trim_center_coincident"):
            added.append(make_coincident(geo_id, PointPos.MID, new_id, PointPos.MID))
        self.sketch.add_constraints(added)

        return OperationResult.ok(f"{type(curve).__name__} bei u={u:.6g} geteilt", data=[geo_id, new_id])
