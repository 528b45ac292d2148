"""
SketchKernel - Zentralisierte Toleranz-Konfiguration
====================================================

Alle Toleranzen der Sketch-Engine an einem Ort.

Toleranz-Philosophie:
- Punkt-Matching (Endpunkte, Schnittpunkte): 1e-5 - Präzision für Constraints
- Parameter-Vergleich (Knoten, Kurvenbereiche): 1e-9 - relativ zum Parameterbereich
- Schnittpunkt-Verfeinerung: 1e-7 - Newton-Abbruch und Duplikat-Erkennung

Verwendung:
    from config.tolerances import Tolerances

    # Direkt als Klassenvariablen
    tol = Tolerances.SKETCH_COINCIDENT

    # Oder via Convenience-Funktionen
    from config.tolerances import sketch_tolerance
    tol = sketch_tolerance()
"""


class Tolerances:
    """
    Zentrale Toleranz-Konstanten für SketchKernel.

    Kategorien:
    - SKETCH_*: 2D-Sketch Operationen (Split, Trim, Join, Knoten)
    - EPSILON_*: Numerische Stabilität
    - COMPARE_*: Gleichheits-Vergleiche
    """

    # =========================================================================
    # Sketch/2D Operationen
    # =========================================================================

    # Coincident-Toleranz: liegt ein Schnittpunkt auf dem Endpunkt der
    # schneidenden Kurve? (Coincident statt PointOnObject)
    SKETCH_COINCIDENT = 1e-5  # 1µm

    # Parameter-Vergleich, relativ zur Länge des Parameterbereichs.
    # Knoten mit kleinerem Abstand gelten als identisch.
    SKETCH_PARAM = 1e-9

    # Schnittpunkt-Verfeinerung (Newton) und Duplikat-Erkennung
    SKETCH_INTERSECTION = 1e-7

    # Abtastdichte für Projektion und Schnittpunkt-Suche
    # Zu klein = Schnittpunkte bei stark gekrümmten Kurven werden übersehen
    SKETCH_SAMPLES_PER_CURVE = 256

    # Zusätzliche Abtastpunkte pro Knotenspanne bei B-Splines
    SKETCH_BSPLINE_SAMPLES_PER_SPAN = 48

    # Tangenten-Winkel-Toleranz für Join mit Stetigkeit (Radians)
    SKETCH_ANGULAR = 1e-4  # ~0.006°

    # =========================================================================
    # Mathematische Epsilon-Werte (Numerische Stabilität)
    # =========================================================================

    # Vermeidet Division durch Null
    EPSILON_MATH = 1e-9

    # =========================================================================
    # Vergleichs-Toleranzen
    # =========================================================================

    # Punkt-Vergleich (sind zwei Punkte "gleich"?)
    COMPARE_POINT = 1e-6


# =============================================================================
# Convenience-Funktionen
# =============================================================================

def sketch_tolerance() -> float:
    """Gibt die Standard-Sketch-Toleranz zurück."""
    return Tolerances.SKETCH_COINCIDENT


def param_tolerance(first: float = 0.0, last: float = 1.0) -> float:
    """Parameter-Toleranz skaliert auf den Bereich [first, last]."""
    return Tolerances.SKETCH_PARAM * max(1.0, abs(last - first))


# =============================================================================
# Toleranz-Validierung (für Debugging)
# =============================================================================

def validate_tolerances():
    """
    Validiert dass alle Toleranzen sinnvolle Werte haben.
    Nützlich für Tests und Debugging.
    """
    issues = []

    if not (1e-9 <= Tolerances.SKETCH_COINCIDENT <= 1e-2):
        issues.append(f"SKETCH_COINCIDENT außerhalb sinnvoller Grenzen: {Tolerances.SKETCH_COINCIDENT}")

    # Schnittpunkte müssen genauer sein als das Coincident-Matching
    if Tolerances.SKETCH_INTERSECTION > Tolerances.SKETCH_COINCIDENT:
        issues.append(
            f"SKETCH_INTERSECTION ({Tolerances.SKETCH_INTERSECTION}) gröber als "
            f"SKETCH_COINCIDENT ({Tolerances.SKETCH_COINCIDENT})"
        )

    if Tolerances.SKETCH_SAMPLES_PER_CURVE < 16:
        issues.append(f"SKETCH_SAMPLES_PER_CURVE zu klein: {Tolerances.SKETCH_SAMPLES_PER_CURVE}")

    return issues


# Automatische Validierung beim Import (nur Warnung, kein Fehler)
_validation_issues = validate_tolerances()
if _validation_issues:
    from loguru import logger
    for issue in _validation_issues:
        logger.warning(f"Toleranz-Validierung: {issue}")
