"""
SketchKernel - GeoId-Konventionen
=================================

GeoIds sind vorzeichenbehaftete Ganzzahlen:
- >= 0: Benutzer-Geometrie in Einfügereihenfolge
- -1 / -2: horizontale / vertikale Achse (-1 ist zugleich der Ursprung)
- <= -3: externe Geometrie, jede weitere Kante einen Schritt negativer
"""

from enum import Enum


class GeoEnum:
    """Reservierte GeoIds."""
    RT_PNT = -1       # Ursprung (mit PointPos.START)
    H_AXIS = -1       # Horizontale Achse
    V_AXIS = -2       # Vertikale Achse
    REF_EXT = -3      # Erste externe Kante
    GEO_UNDEF = -2000  # "keine Geometrie"


class PointPos(Enum):
    """Benannter Punkt auf einer Kurve."""
    NONE = 0
    START = 1
    END = 2
    MID = 3


def is_external_geo_id(geo_id: int) -> bool:
    return GeoEnum.GEO_UNDEF < geo_id <= GeoEnum.REF_EXT


def external_index(geo_id: int) -> int:
    """0-basierte Position einer externen Kante (REF_EXT → 0)."""
    return GeoEnum.REF_EXT - geo_id
