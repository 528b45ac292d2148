"""
SketchKernel - Winkel-Ausdrücke
===============================

Rein textuelle Umformung gebundener Winkel-Ausdrücke auf den
Supplementwinkel (180° - x). Ausgewertet wird hier nichts.
"""

import re

from loguru import logger

_PREFIX_PLAIN = "180 - "
_PREFIX_UNIT = "180 ° - "

# Einheiten, bei denen der Umschlag mit Gradzeichen geschrieben wird
_UNIT_TOKENS = ("°", "deg", "rad", "gon")

# Klammer um eine einzelne Größe, z.B. "(60)" oder "(32 °)"
_SINGLE_QUANTITY = re.compile(
    r"\(\s*(\d+(?:\.\d+)?(?:[eE][-+]?\d+)?(?:\s*(?:°|deg|rad|gon))?)\s*\)"
)


def has_unit(expr: str) -> bool:
    return any(token in expr for token in _UNIT_TOKENS)


def reverse_angle_constraint_expression(expr: str) -> str:
    """
    Ausdruck für den Supplementwinkel.

    "180 - x" und "180 ° - x" werden zu x, alles andere wird zu
    "180 - (x)" bzw. "180 ° - (x)", wenn x eine Einheit trägt.
    """
    if expr.startswith(_PREFIX_PLAIN):
        return expr[len(_PREFIX_PLAIN):]
    if expr.startswith(_PREFIX_UNIT):
        return expr[len(_PREFIX_UNIT):]
    prefix = _PREFIX_UNIT if has_unit(expr) else _PREFIX_PLAIN
    return f"{prefix}({expr})"


def normalize_expression(expr: str) -> str:
    """
    Kanonische Schreibweise eines gebundenen Ausdrucks.

    Klammern um eine einzelne Zahl (mit optionaler Einheit) entfallen,
    so wie ein Ausdrucks-Parser sie beim Zurückschreiben weglässt:
    "180 - (60)" → "180 - 60".
    """
    normalized = _SINGLE_QUANTITY.sub(r"\1", expr.strip())
    if normalized != expr:
        logger.debug(f"[ANGLE-EXPR] '{expr}' → '{normalized}'")
    return normalized
