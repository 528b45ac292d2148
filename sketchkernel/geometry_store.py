"""
SketchKernel - Geometrie-Speicher
=================================

Arena der Kurven, geschlüsselt über unveränderliche Erzeugungs-Tags.
Die GeoId ist nur die Position in der dichten Reihenfolge `_order`
und verschiebt sich beim Löschen; der Tag bleibt.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import copy

from loguru import logger

from .exceptions import GeoIdOutOfRange
from .geometry import Curve2D


class GeometryStore:
    """Geordnete Kurvensammlung mit stabilen Tags."""

    def __init__(self, name: str = "geometry"):
        self._name = name
        self._records: Dict[int, Curve2D] = {}
        self._order: List[int] = []
        self._next_tag = 1

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Curve2D]:
        return (self._records[tag] for tag in self._order)

    def items(self) -> Iterator[Tuple[int, Curve2D]]:
        return ((index, self._records[tag]) for index, tag in enumerate(self._order))

    @property
    def highest_index(self) -> int:
        return len(self._order) - 1

    def _check(self, index: int) -> int:
        if not 0 <= index < len(self._order):
            raise GeoIdOutOfRange(f"{self._name}: Index {index} existiert nicht", index)
        return self._order[index]

    def add(self, curve: Curve2D) -> int:
        tag = self._next_tag
        self._next_tag += 1
        self._records[tag] = curve
        self._order.append(tag)
        return len(self._order) - 1

    def get(self, index: int) -> Curve2D:
        return self._records[self._check(index)]

    def replace(self, index: int, curve: Curve2D) -> None:
        """Ersetzt die Kurve an `index`, der Tag bleibt erhalten."""
        self._records[self._check(index)] = curve

    def tag_of(self, index: int) -> int:
        return self._check(index)

    def index_of_tag(self, tag: int) -> Optional[int]:
        try:
            return self._order.index(tag)
        except ValueError:
            return None

    def delete(self, indices: Iterable[int]) -> Dict[int, Optional[int]]:
        """
        Löscht mehrere Einträge in einem Schritt.

        Returns:
            Abbildung alte Position → neue Position (None = gelöscht)
            für alle Einträge, deren Position sich ändert.
        """
        doomed = set()
        for index in indices:
            doomed.add(self._check(index))

        mapping: Dict[int, Optional[int]] = {}
        new_order: List[int] = []
        for old_index, tag in enumerate(self._order):
            if tag in doomed:
                mapping[old_index] = None
                del self._records[tag]
                continue
            if old_index != len(new_order):
                mapping[old_index] = len(new_order)
            new_order.append(tag)
        self._order = new_order
        logger.debug(f"[GEOSTORE] {len(doomed)} Element(e) aus {self._name} gelöscht, {len(self._order)} verbleiben")
        return mapping

    def snapshot(self) -> Tuple[Dict[int, Curve2D], List[int], int]:
        return copy.deepcopy(self._records), list(self._order), self._next_tag

    def restore(self, state: Tuple[Dict[int, Curve2D], List[int], int]) -> None:
        records, order, next_tag = state
        self._records = dict(records)
        self._order = list(order)
        # Tags werden nie wiederverwendet, auch nicht nach Rollback
        self._next_tag = max(self._next_tag, next_tag)
