"""
SketchKernel - Sketch Operations Module
=======================================

Strukturelle Operationen auf einem Sketch. Jede Operation ist eine
eigenständige Klasse mit klarer Schnittstelle.

Verwendung:
    from sketchkernel.operations import TrimOperation

    op = TrimOperation(sketch)
    result = op.execute(geo_id, click_point)

    if not result.success:
        logger.warning(result.message)
"""

from .base import OperationResult, ResultStatus, SketchOperation
from .split import SplitOperation
from .trim import TrimOperation
from .join import JoinOperation
from .knots import BSplineKnotEditor

__all__ = [
    # Core
    'OperationResult',
    'ResultStatus',
    'SketchOperation',
    # Split / Trim / Join
    'SplitOperation',
    'TrimOperation',
    'JoinOperation',
    # B-Spline
    'BSplineKnotEditor',
]
