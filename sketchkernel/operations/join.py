"""
SketchKernel - Join Operation
=============================

Verbindet zwei offene Kurven an benannten Endpunkten zu einem B-Spline.

Beide Kurven werden exakt nach B-Spline konvertiert, so orientiert, dass
die erste an der Verbindung endet und die zweite dort beginnt, auf einen
gemeinsamen Grad gebracht und verkettet. Mit continuity >= 1 und
tangentialem Übergang wird die Verbindung geglättet.
"""

import numpy as np
from loguru import logger

from config.tolerances import Tolerances
from ..bspline import join_bsplines, to_bspline
from ..constraints import ConstraintType
from ..geo_enum import PointPos
from ..geometry import Curve2D, GeometryType
from ..transaction import SketchTransaction
from .base import OperationResult, SketchOperation

_OPPOSITE = {PointPos.START: PointPos.END, PointPos.END: PointPos.START}


def _end_tangent(curve: Curve2D, pos: PointPos) -> np.ndarray:
    u = curve.first_parameter if pos == PointPos.START else curve.last_parameter
    return curve.derivative(u)


class JoinOperation(SketchOperation):
    """Join zweier Kurven zu einem B-Spline."""

    log_tag = "JOIN"

    def execute(self, geo_id1: int, pos1: PointPos, geo_id2: int, pos2: PointPos,
                continuity: int = 0) -> OperationResult:
        """
        Args:
            geo_id1, pos1: Erste Kurve und ihr Verbindungspunkt (START/END)
            geo_id2, pos2: Zweite Kurve und ihr Verbindungspunkt (START/END)
            continuity: 0 = nur Lage, 1 = tangentialer Übergang
        """
        c1 = self.sketch.get_geometry(geo_id1)
        c2 = self.sketch.get_geometry(geo_id2)

        if geo_id1 < 0 or geo_id2 < 0:
            return self._finish(OperationResult.error("Nur Sketch-Geometrie kann verbunden werden"))
        if geo_id1 == geo_id2:
            return self._finish(OperationResult.error("Eine Kurve kann nicht mit sich selbst verbunden werden"))
        if pos1 not in _OPPOSITE or pos2 not in _OPPOSITE:
            return self._finish(OperationResult.error("Verbindung nur an Start- oder Endpunkten"))
        for curve in (c1, c2):
            if curve.geometry_type == GeometryType.POINT or curve.is_closed:
                return self._finish(OperationResult.error(f"{curve!r} kann nicht verbunden werden"))

        smooth = continuity >= 1 and (
            self._has_tangent_constraint(geo_id1, pos1, geo_id2, pos2)
            or self._tangent_at_joint(c1, pos1, c2, pos2)
        )

        try:
            with SketchTransaction(self.sketch, "Join") as txn:
                tags = [self.sketch.get_geometry_tag(geo_id1), self.sketch.get_geometry_tag(geo_id2)]
                for tag in tags:
                    self._release_internal_geometry(self.sketch.get_geo_id_from_tag(tag))
                geo_id1, geo_id2 = (self.sketch.get_geo_id_from_tag(tag) for tag in tags)

                first = to_bspline(c1)
                if pos1 == PointPos.START:
                    first = first.reversed()
                second = to_bspline(c2)
                if pos2 == PointPos.END:
                    second = second.reversed()

                degree = max(first.degree, second.degree)
                if smooth:
                    degree = max(degree, 2)
                joined = join_bsplines(first.elevated(degree), second.elevated(degree),
                                       degree - 1 if smooth else None)
                joined.construction = c1.construction and c2.construction

                new_id = self.sketch.add_geometry(joined)
                new_tag = self.sketch.get_geometry_tag(new_id)
                self._move_point_constraints(geo_id1, _OPPOSITE[pos1], new_id, PointPos.START)
                self._move_point_constraints(geo_id2, _OPPOSITE[pos2], new_id, PointPos.END)
                self.sketch.del_geometries([geo_id1, geo_id2])
                new_id = self.sketch.get_geo_id_from_tag(new_tag)
                txn.commit()
        except ValueError as e:
            return self._finish(OperationResult.error(f"Join fehlgeschlagen: {e}"))

        logger.debug(f"[JOIN] Neuer B-Spline {joined!r}")
        return self._finish(OperationResult.ok(
            f"Kurven zu GeoId {new_id} verbunden ({'glatt' if smooth else 'C0'})", data=[new_id]
        ))

    def _has_tangent_constraint(self, geo_id1: int, pos1: PointPos,
                                geo_id2: int, pos2: PointPos) -> bool:
        for constraint in self.sketch.constraints:
            if constraint.type != ConstraintType.TANGENT:
                continue
            if constraint.involves(geo_id1, pos1) and constraint.involves(geo_id2, pos2):
                return True
        return False

    @staticmethod
    def _tangent_at_joint(c1: Curve2D, pos1: PointPos, c2: Curve2D, pos2: PointPos) -> bool:
        if not c1.get_point(pos1).is_close(c2.get_point(pos2), Tolerances.SKETCH_COINCIDENT):
            return False
        d1, d2 = _end_tangent(c1, pos1), _end_tangent(c2, pos2)
        norm = float(np.linalg.norm(d1) * np.linalg.norm(d2))
        if norm < Tolerances.EPSILON_MATH:
            return False
        sine = abs(float(d1[0] * d2[1] - d1[1] * d2[0])) / norm
        return sine <= Tolerances.SKETCH_ANGULAR
