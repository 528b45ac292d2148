"""
SketchKernel - Feature Flags
============================

Debug-Flags und Verhaltens-Schalter der Sketch-Engine.
Neue Verhaltensweisen werden mit Flag eingeführt und nach Validierung
als Standard-Code integriert.
"""

from typing import Dict

FEATURE_FLAGS: Dict[str, bool] = {
    # Debug-Modi
    "sketch_debug": False,  # Verbose Diagnose ([TRIM] Kandidaten, Projektionen, Refit-Residuen)

    # Verhalten
    "sketch_trim_center_coincident": True,  # Mittelpunkt-Coincident bei Kreis-/Ellipsenbögen nach Split/Trim
}


def is_enabled(flag: str) -> bool:
    """
    Prüft ob ein Feature-Flag aktiviert ist.

    Args:
        flag: Name des Feature-Flags

    Returns:
        True wenn aktiviert, False wenn nicht aktiviert oder unbekannt
    """
    return FEATURE_FLAGS.get(flag, False)


def set_flag(flag: str, value: bool) -> None:
    """
    Setzt ein Feature-Flag zur Laufzeit.
    Nützlich für Tests und Debugging.
    """
    FEATURE_FLAGS[flag] = value


def get_all_flags() -> Dict[str, bool]:
    """Gibt alle Feature-Flags zurück."""
    return FEATURE_FLAGS.copy()
