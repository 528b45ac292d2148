"""
SketchKernel - Trim Operation
=============================

Entfernt das Kurvenstück um einen Klickpunkt bis zu den nächsten
Schnittpunkten mit anderer Geometrie.

Algorithmus:
1. Fußpunkt des Klickpunktes auf der Zielkurve bestimmen
2. Schnittpunkte mit allen anderen Kurven sammeln (Punkte ausgenommen,
   Schnitte an den eigenen Enden ignoriert)
3. Nächsten Schnitt links/rechts vom Fußpunkt wählen
4. Kurve kürzen, teilen oder löschen; die neuen Enden werden an die
   schneidende Kurve gebunden (Coincident an deren Endpunkt, sonst
   PointOnObject)
"""

from typing import List, Optional, Tuple

from loguru import logger

from config.feature_flags import is_enabled
from config.tolerances import Tolerances, param_tolerance
from ..constraints import make_coincident
from ..geo_enum import PointPos
from ..geometry import CENTERED_ARC_TYPES, Curve2D, GeometryType, Point2D
from ..intersection import Intersection, closest_parameter, curve_intersections
from ..transaction import SketchTransaction
from .base import OperationResult, SketchOperation

# (Schnittpunkt, GeoId der schneidenden Kurve)
Cut = Tuple[Intersection, int]


class TrimOperation(SketchOperation):
    """Trim einer Kurve an den nächsten Schnittpunkten."""

    log_tag = "TRIM"

    def execute(self, geo_id: int, point: Point2D) -> OperationResult:
        """
        Args:
            geo_id: Zielkurve (>= 0)
            point: Klickpunkt; das Stück, auf dem sein Fußpunkt liegt, fällt weg
        """
        curve = self.sketch.get_geometry(geo_id)
        if geo_id < 0:
            return self._finish(OperationResult.error(f"GeoId {geo_id} ist keine Sketch-Geometrie"))
        if curve.geometry_type == GeometryType.POINT:
            return self._finish(OperationResult.no_target("Punkte können nicht getrimmt werden"))

        try:
            with SketchTransaction(self.sketch, "Trim") as txn:
                if curve.geometry_type == GeometryType.BSPLINE:
                    geo_id = self._release_internal_geometry(geo_id)
                u = closest_parameter(curve, point)
                cuts = self.find_cuts(geo_id, curve)
                logger.debug(f"[TRIM] {len(cuts)} Schnittpunkt(e) auf {curve!r}, Klick bei u={u:.6g}")
                if curve.is_closed:
                    result = self._trim_closed(geo_id, curve, u, cuts)
                else:
                    result = self._trim_open(geo_id, curve, u, cuts)
                txn.commit()
        except ValueError as e:
            return self._finish(OperationResult.error(f"Trim fehlgeschlagen: {e}"))

        return self._finish(result)

    def find_cuts(self, geo_id: int, curve: Curve2D) -> List[Cut]:
        """Alle Schnittpunkte der Kurve mit der übrigen Geometrie, nach Parameter sortiert."""
        own_children = set(self.sketch.get_internal_geometry_ids(geo_id))
        candidates = [
            (other_id, other) for other_id, other in enumerate(self.sketch.geometries)
            if other_id != geo_id and other_id not in own_children
        ]
        candidates += self.sketch.external_geometries

        tol = Tolerances.SKETCH_COINCIDENT
        ends = [] if curve.is_closed else [curve.start_point, curve.end_point]
        cuts: List[Cut] = []
        for other_id, other in candidates:
            if other.geometry_type == GeometryType.POINT:
                continue
            for hit in curve_intersections(curve, other):
                if any(hit.point.distance_to(end) <= tol for end in ends):
                    continue
                cuts.append((hit, other_id))
        cuts.sort(key=lambda cut: cut[0].param)
        return cuts

    @staticmethod
    def _neighbours(u: float, cuts: List[Cut]) -> Tuple[Optional[Cut], Optional[Cut]]:
        """Nächster Schnitt unterhalb und oberhalb von u."""
        below = [cut for cut in cuts if cut[0].param < u]
        above = [cut for cut in cuts if cut[0].param > u]
        return (below[-1] if below else None), (above[0] if above else None)

    def _trim_open(self, geo_id: int, curve: Curve2D, u: float, cuts: List[Cut]) -> OperationResult:
        lo, hi = self._neighbours(u, cuts)
        first, last = curve.first_parameter, curve.last_parameter

        if lo is None and hi is None:
            self.sketch.del_geometry(geo_id)
            return OperationResult.ok(f"{type(curve).__name__} ohne Schnittpunkte gelöscht", data=[])

        if lo is not None and hi is not None:
            head = curve.trimmed(first, lo[0].param)
            tail = curve.trimmed(hi[0].param, last)
            self.sketch.replace_geometry(geo_id, head)
            new_id = self.sketch.add_geometry(tail)

            self._move_point_constraints(geo_id, PointPos.END, new_id, PointPos.END)
            self._duplicate_edge_constraints(geo_id, new_id)

            added = [
                self._bound_constraint(geo_id, PointPos.END, lo[1], lo[0]),
                self._bound_constraint(new_id, PointPos.START, hi[1], hi[0]),
            ]
            if curve.geometry_type in CENTERED_ARC_TYPES and is_enabled("sketch_trim_center_coincident"):
                added.append(make_coincident(geo_id, PointPos.MID, new_id, PointPos.MID))
            self.sketch.add_constraints(added)
            return OperationResult.ok(f"{type(curve).__name__} in zwei Stücke getrimmt",
                                      data=[geo_id, new_id])

        if hi is None:
            # Nur links ein Schnitt: Ende fällt weg
            self.sketch.replace_geometry(geo_id, curve.trimmed(first, lo[0].param))
            self._drop_point_constraints(geo_id, (PointPos.END,))
            self.sketch.add_constraint(self._bound_constraint(geo_id, PointPos.END, lo[1], lo[0]))
        else:
            # Nur rechts ein Schnitt: Anfang fällt weg
            self.sketch.replace_geometry(geo_id, curve.trimmed(hi[0].param, last))
            self._drop_point_constraints(geo_id, (PointPos.START,))
            self.sketch.add_constraint(self._bound_constraint(geo_id, PointPos.START, hi[1], hi[0]))
        return OperationResult.ok(f"{type(curve).__name__} gekürzt", data=[geo_id])

    def _trim_closed(self, geo_id: int, curve: Curve2D, u: float, cuts: List[Cut]) -> OperationResult:
        tol = param_tolerance(curve.first_parameter, curve.last_parameter)
        distinct: List[Cut] = []
        for cut in cuts:
            if not distinct or cut[0].param - distinct[-1][0].param > tol:
                distinct.append(cut)
        if len(distinct) > 1 and distinct[0][0].param + curve.period - distinct[-1][0].param <= tol:
            distinct.pop()

        if len(distinct) < 2:
            self.sketch.del_geometry(geo_id)
            return OperationResult.ok(
                f"{type(curve).__name__} mit {len(distinct)} Schnittpunkt(en) gelöscht", data=[]
            )

        lo, hi = self._neighbours(u, distinct)
        # Über die Naht weiterzählen
        lo = lo or distinct[-1]
        hi = hi or distinct[0]
        end_param = lo[0].param
        while end_param <= hi[0].param:
            end_param += curve.period

        self.sketch.replace_geometry(geo_id, curve.trimmed(hi[0].param, end_param))
        self._drop_point_constraints(geo_id, (PointPos.START, PointPos.END))
        self.sketch.add_constraints([
            self._bound_constraint(geo_id, PointPos.START, hi[1], hi[0]),
            self._bound_constraint(geo_id, PointPos.END, lo[1], lo[0]),
        ])
        return OperationResult.ok(f"{type(curve).__name__} zu offenem Bogen getrimmt", data=[geo_id])
