"""
SketchKernel - Sketch Geometry/Constraint Engine
"""

from config.version import VERSION as __version__

from .geo_enum import GeoEnum, PointPos

from .geometry import (
    Point2D, SketchPoint2D, Line2D, Circle2D, Arc2D, Ellipse2D, EllipseArc2D,
    HyperbolaArc2D, ParabolaArc2D, Curve2D, GeometryType, get_point
)

from .bspline import BSpline2D, to_bspline

from .constraints import (
    Constraint, ConstraintType, InternalAlignmentType,
    make_coincident, make_point_on_object, make_tangent, make_horizontal,
    make_vertical, make_parallel, make_perpendicular, make_equal,
    make_radius, make_angle, make_internal_alignment
)

from .exceptions import SketchError, GeoIdOutOfRange

from .renumbering import get_constraint_after_deleting_geo, change_constraint_after_deleting_geo

from .angle_expression import reverse_angle_constraint_expression

from .transaction import SketchTransaction

from .sketch import Sketch
