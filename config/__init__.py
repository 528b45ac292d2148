"""
SketchKernel - Configuration Module
===================================

Zentrale Konfiguration für Toleranzen und Debug-Flags der Sketch-Engine.
"""

from .tolerances import Tolerances, sketch_tolerance, param_tolerance
from .feature_flags import is_enabled, set_flag, get_all_flags, FEATURE_FLAGS
