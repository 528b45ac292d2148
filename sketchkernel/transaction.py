"""
SketchKernel - Sketch-Transaktionen
===================================

Atomare Strukturänderungen mit automatischem Rollback.

Usage:
    with SketchTransaction(sketch, "Trim") as txn:
        ...  # Geometrie/Constraints ändern
        txn.commit()

Ohne commit() oder bei einer Exception werden Geometrie- und
Constraint-Speicher auf den Snapshot zurückgesetzt. Exceptions werden
nach dem Rollback weitergereicht.
"""

from typing import TYPE_CHECKING, Optional
import copy

from loguru import logger

if TYPE_CHECKING:
    from .sketch import Sketch


class SketchTransaction:
    """Context Manager für atomare Sketch-Änderungen."""

    def __init__(self, sketch: 'Sketch', operation_name: str = "Operation"):
        self._sketch = sketch
        self._operation_name = operation_name
        self._snapshot: Optional[tuple] = None
        self._committed = False
        self._entered = False

    def __enter__(self) -> 'SketchTransaction':
        if self._entered:
            raise RuntimeError("Transaction already entered")
        self._entered = True
        sketch = self._sketch
        self._snapshot = (
            sketch._geometry.snapshot(),
            sketch._external.snapshot(),
            copy.deepcopy(sketch._constraints),
        )
        logger.debug(f"[SKETCH] Transaction started: {self._operation_name}")
        return self

    def commit(self):
        if not self._entered:
            raise RuntimeError("Cannot commit - transaction not entered")
        self._committed = True

    def rollback(self):
        geometry, external, constraints = self._snapshot
        self._sketch._geometry.restore(geometry)
        self._sketch._external.restore(external)
        self._sketch._constraints = constraints

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            logger.warning(f"[SKETCH] {self._operation_name} fehlgeschlagen, Rollback: {exc_val}")
            self.rollback()
        elif not self._committed:
            logger.debug(f"[SKETCH] {self._operation_name} nicht committed, Rollback")
            self.rollback()
        return False
