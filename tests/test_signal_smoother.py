"""
Tests for the smoothing anchors
===============================
"""

import pytest
import numpy as np

from handorbit.recognition.signal_smoother import AdaptiveAnchor, FixedAnchor, SignalSmoother


class TestAdaptiveAnchor:

    @pytest.fixture
    def anchor(self):
        return AdaptiveAnchor("pinch", min_factor=0.1, max_factor=0.8, gain=15.0)

    def test_first_sample_snaps(self, anchor):
        value = anchor.update([0.3, 0.7])
        np.testing.assert_allclose(value, [0.3, 0.7])
        assert anchor.is_set

    def test_small_move_uses_floor_factor(self, anchor):
        anchor.reset([0.5, 0.5])
        # delta 0.001 * 15 = 0.015 -> clamped up to 0.1
        value = anchor.update([0.501, 0.5])
        assert value[0] == pytest.approx(0.5 + 0.001 * 0.1)

    def test_large_move_uses_ceiling_factor(self, anchor):
        anchor.reset([0.5, 0.5])
        # delta 0.3 * 15 = 4.5 -> clamped down to 0.8
        value = anchor.update([0.8, 0.5])
        assert value[0] == pytest.approx(0.5 + 0.3 * 0.8)

    def test_mid_move_scales_with_delta(self, anchor):
        anchor.reset([0.0, 0.0])
        value = anchor.update([0.02, 0.0])
        # factor = 0.02 * 15 = 0.3
        assert value[0] == pytest.approx(0.02 * 0.3)

    def test_converges_on_stationary_target(self, anchor):
        anchor.reset([0.5, 0.8])
        target = np.array([0.4, 0.5])
        for _ in range(80):
            value = anchor.update(target)
        assert np.linalg.norm(value - target) < 1e-4

    def test_reset_and_clear(self, anchor):
        anchor.reset([0.2, 0.2])
        np.testing.assert_allclose(anchor.value, [0.2, 0.2])
        anchor.clear()
        assert anchor.value is None
        assert not anchor.is_set

    def test_value_is_a_copy(self, anchor):
        anchor.update([0.1, 0.1])
        anchor.value[0] = 99.0
        assert anchor.value[0] == pytest.approx(0.1)


class TestFixedAnchor:

    def test_constant_factor(self):
        anchor = FixedAnchor("two_finger", factor=0.5)
        anchor.update([0.0, 0.0])
        assert anchor.update([1.0, 0.0])[0] == pytest.approx(0.5)
        assert anchor.update([1.0, 0.0])[0] == pytest.approx(0.75)
        # Tiny moves get the same factor
        anchor.reset([0.0, 0.0])
        assert anchor.update([0.001, 0.0])[0] == pytest.approx(0.0005)

    def test_ignores_depth(self):
        anchor = FixedAnchor("two_finger", factor=0.5)
        value = anchor.update([0.2, 0.3, -0.1])
        assert value.shape == (2,)


def test_smoother_builds_from_config(smoothing_cfg):
    smoother = SignalSmoother(smoothing_cfg)
    smoother.pinch.update([0.1, 0.1])
    smoother.two_finger.update([0.2, 0.2])
    smoother.reset()
    assert not smoother.pinch.is_set
    assert not smoother.two_finger.is_set
