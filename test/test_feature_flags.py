"""
Feature Flags Tests - Tests für Flags und Toleranz-Konfiguration
"""

import pytest
from config.feature_flags import (
    is_enabled,
    set_flag,
    get_all_flags,
    FEATURE_FLAGS
)
from config.tolerances import Tolerances, param_tolerance, sketch_tolerance, validate_tolerances


class TestFeatureFlagsBasic:
    """Tests für grundlegende Feature Flag Funktionalität."""

    def test_is_enabled_existing_flag_true(self):
        # Mittelpunkt-Coincident ist standardmäßig an
        assert is_enabled("sketch_trim_center_coincident") is True

    def test_is_enabled_existing_flag_false(self):
        assert is_enabled("sketch_debug") is False

    def test_is_enabled_nonexistent_flag(self):
        """Nicht existierendes Flag gibt False zurück."""
        assert is_enabled("nonexistent_flag_xyz123") is False

    def test_get_all_flags_returns_copy(self):
        flags = get_all_flags()
        flags["new_flag"] = True

        # Original sollte nicht verändert sein
        assert "new_flag" not in FEATURE_FLAGS

    def test_set_flag_runtime(self):
        set_flag("sketch_debug", True)
        assert is_enabled("sketch_debug") is True

        set_flag("sketch_debug", False)
        assert is_enabled("sketch_debug") is False


class TestFeatureFlagIsolation:
    """Die autouse-Fixture setzt Flags zwischen Tests zurück."""

    def test_mutate_flag(self):
        set_flag("sketch_trim_center_coincident", False)
        assert is_enabled("sketch_trim_center_coincident") is False

    def test_flag_is_restored(self):
        assert is_enabled("sketch_trim_center_coincident") is True


class TestTolerances:

    def test_defaults_are_valid(self):
        assert validate_tolerances() == []

    def test_sketch_tolerance(self):
        assert sketch_tolerance() == Tolerances.SKETCH_COINCIDENT

    @pytest.mark.parametrize("first, last, expected", [
        (0.0, 1.0, Tolerances.SKETCH_PARAM),
        (0.0, 0.5, Tolerances.SKETCH_PARAM),
        (0.0, 100.0, Tolerances.SKETCH_PARAM * 100.0),
    ])
    def test_param_tolerance_scales_with_range(self, first, last, expected):
        assert param_tolerance(first, last) == pytest.approx(expected)

    def test_intersection_finer_than_coincident(self, monkeypatch):
        monkeypatch.setattr(Tolerances, "SKETCH_INTERSECTION", 1e-3)
        assert len(validate_tolerances()) == 1


class TestVersion:

    def test_package_version_matches_config(self):
        import sketchkernel
        from config.version import VERSION, VERSION_MAJOR, VERSION_MINOR, VERSION_PATCH

        assert sketchkernel.__version__ == VERSION
        assert VERSION == f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"
