"""
SketchKernel - B-Spline Knoten-Editor
=====================================

Ändert Knoten-Multiplizitäten und fügt Knoten ein. Knoten-Indizes sind
1-basiert über die unterschiedlichen Knotenwerte.

Ungültige Änderungen werfen ValueError, bevor der Sketch verändert wird.
"""

from typing import List

from loguru import logger

from ..bspline import BSpline2D
from ..exceptions import GeoIdOutOfRange
from ..geometry import GeometryType
from ..transaction import SketchTransaction


def _refuse(message: str):
    logger.warning(f"[KNOT] {message}")
    raise ValueError(message)


class BSplineKnotEditor:
    """Knoten-Operationen auf einem B-Spline im Sketch."""

    def __init__(self, sketch):
        self.sketch = sketch

    def _bspline(self, geo_id: int) -> BSpline2D:
        curve = self.sketch.get_geometry(geo_id)
        if curve.geometry_type != GeometryType.BSPLINE:
            _refuse(f"GeoId {geo_id} ist kein B-Spline ({curve.geometry_type.name})")
        return curve

    def modify_multiplicity(self, geo_id: int, knot_index: int, delta: int) -> None:
        """
        Ändert die Multiplizität des Knotens `knot_index` um `delta`.

        Multiplizität 0 entfernt den Knoten.

        Raises:
            GeoIdOutOfRange: Knoten-Index existiert nicht
            ValueError: Ergebnis außerhalb [0, Grad], Endknoten einer
                geklemmten Kurve oder Naht einer periodischen Kurve
        """
        curve = self._bspline(geo_id)
        if not 1 <= knot_index <= curve.count_knots():
            raise GeoIdOutOfRange(f"Knoten {knot_index} existiert nicht (1..{curve.count_knots()})", knot_index)
        if delta == 0:
            return

        i = knot_index - 1
        p = curve.degree
        knots, mults = list(curve.knots), list(curve.multiplicities)
        new_mult = mults[i] + delta
        seam = i in (0, len(knots) - 1)

        if new_mult < 0:
            _refuse(f"Multiplizität {mults[i]}{delta:+d} wäre negativ")
        if new_mult > p:
            _refuse(f"Multiplizität {new_mult} überschreitet Grad {p}")
        if seam and not curve.periodic:
            _refuse("Endknoten eines geklemmten B-Splines sind nicht änderbar")
        if seam and new_mult == 0:
            _refuse("Der Nahtknoten eines periodischen B-Splines kann nicht entfernt werden")

        if new_mult == 0:
            del knots[i]
            del mults[i]
        elif seam:
            mults[0] = mults[-1] = new_mult
        else:
            mults[i] = new_mult

        self._apply(geo_id, curve, knots, mults,
                    f"Knoten {knot_index}: Multiplizität {curve.multiplicities[i]} → {new_mult}")

    def insert_knot(self, geo_id: int, param: float, multiplicity: int = 1) -> None:
        """
        Fügt bei `param` einen Knoten ein oder erhöht die Multiplizität
        eines vorhandenen Knotens.

        Raises:
            ValueError: multiplicity <= 0 oder > Grad, Parameter außerhalb
                des Kurvenbereichs, resultierende Multiplizität > Grad
        """
        curve = self._bspline(geo_id)
        p = curve.degree
        if multiplicity <= 0 or multiplicity > p:
            _refuse(f"Multiplizität {multiplicity} nicht in [1, {p}]")

        first, last = curve.first_parameter, curve.last_parameter
        if curve.periodic:
            param = first + (param - first) % (last - first)
        elif not first <= param <= last:
            _refuse(f"Parameter {param} außerhalb [{first}, {last}]")

        knots, mults = list(curve.knots), list(curve.multiplicities)
        existing = curve.find_knot(param)
        if existing is not None:
            seam = existing in (0, len(knots) - 1)
            if seam and not curve.periodic:
                _refuse("Endknoten eines geklemmten B-Splines sind nicht änderbar")
            new_mult = mults[existing] + multiplicity
            if new_mult > p:
                _refuse(f"Multiplizität {new_mult} am Knoten {existing + 1} überschreitet Grad {p}")
            if seam:
                mults[0] = mults[-1] = new_mult
            else:
                mults[existing] = new_mult
            description = f"Knoten {existing + 1}: Multiplizität → {new_mult}"
        else:
            position = next(j for j, k in enumerate(knots) if k > param)
            knots.insert(position, param)
            mults.insert(position, multiplicity)
            description = f"Knoten bei u={param:.6g} eingefügt (Multiplizität {multiplicity})"

        self._apply(geo_id, curve, knots, mults, description)

    def _apply(self, geo_id: int, curve: BSpline2D, knots: List[float], mults: List[int],
               description: str) -> None:
        """Refit auf den neuen Knotenvektor und Hilfsgeometrie nachziehen."""
        p = curve.degree
        n_poles = sum(mults[:-1]) if curve.periodic else sum(mults) - p - 1
        if n_poles < p + 1:
            _refuse(f"Zu wenige Pole ({n_poles}) für Grad {p}")

        updated = curve.refit(knots, mults)
        updated.construction = curve.construction

        with SketchTransaction(self.sketch, "Knoten") as txn:
            self.sketch.replace_geometry(geo_id, updated)
            if self.sketch.has_internal_geometry(geo_id):
                self.sketch.update_internal_geometry(geo_id)
            txn.commit()
        logger.debug(f"[KNOT] GeoId {geo_id}: {description}, {curve.count_poles()} → {updated.count_poles()} Pole")

