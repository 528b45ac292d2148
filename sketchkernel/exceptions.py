"""
SketchKernel - Fehlertypen
"""


class SketchError(Exception):
    """Basisklasse aller Sketch-Fehler."""


class GeoIdOutOfRange(SketchError, IndexError):
    """GeoId, Constraint-Index oder Knoten-Index existiert nicht."""

    def __init__(self, message: str, index=None):
        super().__init__(message)
        self.index = index
