import pytest

from config.feature_flags import set_flag
from sketchkernel import Sketch

from sketch_test_utils import make_non_periodic_bspline, make_periodic_bspline


# Global Feature Flag Defaults - Single Source of Truth for Test Isolation
# ========================================================================
# WICHTIG: Jeder Test muss mit sauberen Feature-Flags starten.
# Diese Defaults müssen mit config/feature_flags.py synchron gehalten werden.
FEATURE_FLAG_DEFAULTS = {
    # Debug-Modi
    "sketch_debug": False,

    # Trim/Split
    "sketch_trim_center_coincident": True,
}


@pytest.fixture(autouse=True)
def _global_feature_flag_isolation():
    """
    Globale Feature-Flag-Isolation.

    Stellt sicher, dass jeder Test mit sauberen, deterministischen
    Feature-Flags startet und keine Mutation in den nächsten Test leckt.
    """
    for key, value in FEATURE_FLAG_DEFAULTS.items():
        set_flag(key, value)

    yield

    for key, value in FEATURE_FLAG_DEFAULTS.items():
        set_flag(key, value)


@pytest.fixture
def sketch():
    return Sketch("test_sketch")


@pytest.fixture
def non_periodic_bspline():
    return make_non_periodic_bspline()


@pytest.fixture
def periodic_bspline():
    return make_periodic_bspline()
