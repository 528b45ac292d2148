"""
SketchKernel - GeoId-Umnummerierung
===================================

Nach dem Löschen einer Geometrie verschieben sich die GeoIds:

- gelöschte Id d >= 0: Referenzen g > d werden zu g - 1
- gelöschte Id d < 0 (externe Kante): Referenzen g < d werden zu g + 1
- g == d: der Constraint ist hinfällig
- GEO_UNDEF bleibt unverändert

Für Mehrfach-Löschungen berechnet der GeometryStore eine Abbildung
alt → neu, die hier in einem Durchlauf angewendet wird.
"""

from typing import Dict, Iterable, List, Optional

from loguru import logger

from .constraints import Constraint, ConstraintType
from .geo_enum import GeoEnum

_INVALID = object()
_SLOTS = ("first", "second", "third")


def shifted_geo_id(geo_id: int, deleted_geo_id: int):
    """Neue GeoId nach Löschen von `deleted_geo_id`, oder _INVALID."""
    if geo_id == GeoEnum.GEO_UNDEF:
        return geo_id
    if geo_id == deleted_geo_id:
        return _INVALID
    if deleted_geo_id >= 0:
        return geo_id - 1 if geo_id > deleted_geo_id else geo_id
    return geo_id + 1 if geo_id < deleted_geo_id else geo_id


def _shifted_slots(constraint: Constraint, deleted_geo_id: int) -> Optional[Dict[str, int]]:
    slots = {}
    for slot in _SLOTS:
        new_id = shifted_geo_id(getattr(constraint, slot), deleted_geo_id)
        if new_id is _INVALID:
            return None
        slots[slot] = new_id
    return slots


def get_constraint_after_deleting_geo(constraint: Optional[Constraint],
                                      deleted_geo_id: int) -> Optional[Constraint]:
    """
    Kopie von `constraint` mit verschobenen Referenzen.

    Returns:
        None, wenn `constraint` None ist oder die gelöschte Geometrie referenziert.
    """
    if constraint is None:
        return None
    slots = _shifted_slots(constraint, deleted_geo_id)
    if slots is None:
        return None
    result = constraint.copy()
    for slot, geo_id in slots.items():
        setattr(result, slot, geo_id)
    return result


def change_constraint_after_deleting_geo(constraint: Optional[Constraint], deleted_geo_id: int) -> None:
    """In-place Variante; hinfällige Constraints werden zum Tombstone (Typ NONE)."""
    if constraint is None:
        return
    slots = _shifted_slots(constraint, deleted_geo_id)
    if slots is None:
        constraint.type = ConstraintType.NONE
        return
    for slot, geo_id in slots.items():
        setattr(constraint, slot, geo_id)


def remap_constraint(constraint: Constraint, mapping: Dict[int, Optional[int]]) -> Optional[Constraint]:
    """
    Wendet eine GeoId-Abbildung an.

    Ids, die nicht in `mapping` stehen, bleiben unverändert. Ein Eintrag
    None bedeutet "gelöscht" und macht den Constraint hinfällig.
    """
    result = constraint.copy()
    for slot in _SLOTS:
        geo_id = getattr(constraint, slot)
        if geo_id == GeoEnum.GEO_UNDEF or geo_id not in mapping:
            continue
        new_id = mapping[geo_id]
        if new_id is None:
            return None
        setattr(result, slot, new_id)
    return result


def remap_constraints(constraints: Iterable[Constraint],
                      mapping: Dict[int, Optional[int]]) -> List[Constraint]:
    """Bulk-Umnummerierung; hinfällige Constraints fallen heraus."""
    kept = []
    dropped = 0
    for constraint in constraints:
        remapped = remap_constraint(constraint, mapping)
        if remapped is None:
            dropped += 1
        else:
            kept.append(remapped)
    if dropped:
        logger.debug(f"[RENUMBER] {dropped} Constraint(s) nach Löschung entfernt")
    return kept
