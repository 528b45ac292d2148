"""
SketchKernel - Interne Hilfsgeometrie
=====================================

Erzeugt und entfernt die Konstruktionsgeometrie, die die innere Struktur
einer Kurve sichtbar macht:

- Ellipse / Ellipsenbogen: Haupt- und Nebenachse, beide Brennpunkte
- Hyperbelbogen: Haupt- und Nebenachse, Brennpunkt
- Parabelbogen: Brennachse, Brennpunkt
- B-Spline: ein Kreis je Pol, ein Punkt je Knoten

Jedes Element hängt über einen INTERNAL_ALIGNMENT-Constraint
(first = Hilfsgeometrie, second = Elternkurve) am Elternelement.
"""

from typing import TYPE_CHECKING, Dict, List, Tuple

import numpy as np
from loguru import logger

from .constraints import (
    Constraint, InternalAlignmentType, make_internal_alignment,
)
from .geo_enum import PointPos
from .geometry import (
    Circle2D, Curve2D, GeometryType, Line2D, Point2D, SketchPoint2D,
)

if TYPE_CHECKING:
    from .sketch import Sketch


IA = InternalAlignmentType

# Kurventypen, die interne Geometrie besitzen können
SUPPORTED_TYPES = (
    GeometryType.ELLIPSE,
    GeometryType.ELLIPSE_ARC,
    GeometryType.HYPERBOLA_ARC,
    GeometryType.PARABOLA_ARC,
    GeometryType.BSPLINE,
)


def _child_pos(curve: Curve2D) -> PointPos:
    """Über welchen Punkt die Hilfsgeometrie angebunden ist."""
    if curve.geometry_type == GeometryType.POINT:
        return PointPos.START
    if curve.geometry_type == GeometryType.CIRCLE:
        return PointPos.MID
    return PointPos.NONE


def _construction(curve: Curve2D) -> Curve2D:
    curve.construction = True
    curve.internal = True
    return curve


def _line(a: np.ndarray, b: np.ndarray) -> Line2D:
    return _construction(Line2D(Point2D.from_array(a), Point2D.from_array(b)))


def _point(p) -> SketchPoint2D:
    if isinstance(p, Point2D):
        return _construction(SketchPoint2D(Point2D(p.x, p.y)))
    return _construction(SketchPoint2D(Point2D.from_array(p)))


def pole_circle_radius(poles: List[Point2D]) -> float:
    """Darstellungsradius der Polkreise, abgeleitet aus der Pol-Ausdehnung."""
    xy = np.array([p.as_tuple() for p in poles], dtype=float)
    extent = float(np.hypot(*(xy.max(axis=0) - xy.min(axis=0))))
    return extent / 20.0 if extent > 0.0 else 1.0


def internal_elements(parent: Curve2D) -> List[Tuple[InternalAlignmentType, int, Curve2D]]:
    """
    Sollzustand der Hilfsgeometrie einer Kurve.

    Returns:
        Liste (Ausrichtung, 1-basierter Index oder -1, Kurve)
    """
    gtype = parent.geometry_type

    if gtype in (GeometryType.ELLIPSE, GeometryType.ELLIPSE_ARC):
        c = parent.center.as_array()
        x_dir, y_dir = parent.axes()
        a, b = parent.major_radius, parent.minor_radius
        return [
            (IA.ELLIPSE_MAJOR_DIAMETER, -1, _line(c - a * x_dir, c + a * x_dir)),
            (IA.ELLIPSE_MINOR_DIAMETER, -1, _line(c - b * y_dir, c + b * y_dir)),
            (IA.ELLIPSE_FOCUS1, -1, _point(parent.focus1())),
            (IA.ELLIPSE_FOCUS2, -1, _point(parent.focus2())),
        ]

    if gtype == GeometryType.HYPERBOLA_ARC:
        c = parent.center.as_array()
        x_dir, y_dir = parent.axes()
        a, b = parent.major_radius, parent.minor_radius
        vertex = c + a * x_dir
        return [
            (IA.HYPERBOLA_MAJOR, -1, _line(c, vertex)),
            (IA.HYPERBOLA_MINOR, -1, _line(vertex - b * y_dir, vertex + b * y_dir)),
            (IA.HYPERBOLA_FOCUS, -1, _point(parent.focus())),
        ]

    if gtype == GeometryType.PARABOLA_ARC:
        return [
            (IA.PARABOLA_FOCAL_AXIS, -1, _line(parent.vertex.as_array(), parent.focus().as_array())),
            (IA.PARABOLA_FOCUS, -1, _point(parent.focus())),
        ]

    if gtype == GeometryType.BSPLINE:
        radius = pole_circle_radius(parent.poles)
        elements = [
            (IA.BSPLINE_CONTROL_POINT, i + 1,
             _construction(Circle2D(Point2D(pole.x, pole.y), radius)))
            for i, pole in enumerate(parent.poles)
        ]
        elements += [
            (IA.BSPLINE_KNOT_POINT, i + 1, _point(parent.knot_point(i)))
            for i in range(parent.count_knots())
        ]
        return elements

    return []


class InternalGeometrySynthesizer:
    """
    Erzeugt, synchronisiert und entfernt interne Hilfsgeometrie.

    Arbeitet ausschließlich über die öffentliche Schnittstelle des Sketch,
    damit jede Löschung durch die Umnummerierung läuft.
    """

    def __init__(self, sketch: 'Sketch'):
        self.sketch = sketch

    def alignments(self, geo_id: int) -> List[Tuple[int, Constraint]]:
        """(Constraint-Index, Constraint) aller Ausrichtungen mit Elternteil geo_id."""
        return [
            (index, c) for index, c in enumerate(self.sketch.constraints)
            if c.is_internal_alignment and c.second == geo_id
        ]

    def has_internal_geometry(self, geo_id: int) -> bool:
        return bool(self.alignments(geo_id))

    def expose(self, geo_id: int) -> int:
        """
        Legt fehlende Hilfsgeometrie an. Bereits vorhandene Elemente
        (gleiche Ausrichtung und gleicher Index) werden übersprungen.

        Returns:
            Anzahl neu angelegter Elemente
        """
        parent = self.sketch.get_geometry(geo_id)
        if parent.geometry_type not in SUPPORTED_TYPES:
            logger.debug(f"[INTERNAL] {parent!r} hat keine interne Geometrie")
            return 0

        present = {
            (c.alignment_type, c.internal_alignment_index)
            for _, c in self.alignments(geo_id)
        }
        created = 0
        for alignment, index, child in internal_elements(parent):
            if (alignment, index) in present:
                continue
            child_id = self.sketch.add_geometry(child, construction=True)
            self.sketch.add_constraint(
                make_internal_alignment(alignment, child_id, _child_pos(child), geo_id, index)
            )
            created += 1

        if created:
            logger.debug(f"[INTERNAL] {created} Hilfselement(e) für GeoId {geo_id} angelegt")
        return created

    def _used_children(self, geo_id: int) -> Dict[int, bool]:
        """child_id → True, wenn ein fremder Constraint die Hilfsgeometrie referenziert."""
        constraints = self.sketch.constraints
        result = {}
        for index, alignment in self.alignments(geo_id):
            child = alignment.first
            result[child] = any(
                other_index != index and other.involves(child)
                for other_index, other in enumerate(constraints)
            )
        return result

    def delete_unused(self, geo_id: int) -> int:
        """
        Löscht alle nicht anderweitig referenzierte Hilfsgeometrie von geo_id.

        Returns:
            Anzahl gelöschter Elemente
        """
        self.sketch.get_geometry(geo_id)
        unused = sorted(child for child, used in self._used_children(geo_id).items() if not used)
        if not unused:
            return 0
        self.sketch.del_geometries(unused, delete_internal=False)
        logger.debug(f"[INTERNAL] {len(unused)} unbenutzte Hilfselement(e) von GeoId {geo_id} entfernt")
        return len(unused)

    def detach(self, geo_id: int) -> int:
        """
        Löst die verbleibende Hilfsgeometrie vom Elternelement: die
        Ausrichtungen werden entfernt, die Kurven bleiben als normale
        Konstruktionsgeometrie bestehen.
        """
        alignments = self.alignments(geo_id)
        for _, alignment in alignments:
            self.sketch.get_geometry(alignment.first).internal = False
        if alignments:
            self.sketch.del_constraints([index for index, _ in alignments])
            logger.debug(f"[INTERNAL] {len(alignments)} Ausrichtung(en) von GeoId {geo_id} gelöst")
        return len(alignments)

    def resync(self, geo_id: int) -> int:
        """
        Passt vorhandene Hilfsgeometrie an die geänderte Elternkurve an.

        Elemente, deren Index nicht mehr existiert, werden gelöscht; wenn
        ein fremder Constraint sie referenziert, bleiben sie als normale
        Geometrie ohne Ausrichtung stehen. Fehlende Elemente werden neu angelegt.

        Returns:
            Anzahl neu angelegter Elemente
        """
        parent = self.sketch.get_geometry(geo_id)
        target = {(alignment, index): child for alignment, index, child in internal_elements(parent)}
        used = self._used_children(geo_id)

        stale = []
        orphans = []
        for index, alignment in self.alignments(geo_id):
            wanted = target.get((alignment.alignment_type, alignment.internal_alignment_index))
            if wanted is None:
                if used.get(alignment.first):
                    self.sketch.get_geometry(alignment.first).internal = False
                    stale.append(index)
                else:
                    orphans.append(alignment.first)
                continue
            current = self.sketch.get_geometry(alignment.first)
            # Lage übernehmen, Konstruktions-Eigenschaften der alten Kurve behalten
            wanted.construction = current.construction
            self.sketch.replace_geometry(alignment.first, wanted)

        if stale:
            self.sketch.del_constraints(stale)
            logger.debug(f"[INTERNAL] {len(stale)} Ausrichtung(en) ohne Gegenstück gelöst")
        if orphans:
            tag = self.sketch.get_geometry_tag(geo_id)
            # Ausrichtungen der Waisen fallen beim Umnummerieren weg
            self.sketch.del_geometries(orphans, delete_internal=False)
            geo_id = self.sketch.get_geo_id_from_tag(tag)
            logger.debug(f"[INTERNAL] {len(orphans)} verwaiste Hilfsgeometrie(n) gelöscht")
        return self.expose(geo_id)
