"""Tests for the normalization and blend stage."""

import numpy as np
import pytest

from harmonik.core.normalize import ClampPolicy, normalize_blend, to_bytes

RAW = np.linspace(-1.0, 1.0, 41)


class TestNormalizeBlend:
    def test_identity_settings(self):
        np.testing.assert_array_equal(
            normalize_blend(RAW, scale=1.0, blend=0.0, invert=False),
            (RAW + 1) / 2,
        )

    @pytest.mark.parametrize("scale", [0.0, 0.5, 1.2, 2.0])
    @pytest.mark.parametrize("blend", [0.0, 0.3, 1.0])
    def test_invert_is_complement(self, scale, blend):
        plain = normalize_blend(RAW, scale, blend, invert=False)
        inverted = normalize_blend(RAW, scale, blend, invert=True)
        np.testing.assert_array_equal(inverted, 1.0 - plain)

    @pytest.mark.parametrize("scale", [0.0, 1.0, 2.0])
    def test_full_blend_is_mid_gray(self, scale):
        np.testing.assert_allclose(normalize_blend(RAW, scale, blend=1.0), 0.5)

    def test_blend_converges_to_mid_gray(self):
        blends = (0.0, 0.5, 0.9, 0.99, 0.999)
        # Distance from mid-gray shrinks linearly with (1 - blend)
        unblended = np.abs(1.7 * (RAW + 1) / 2 - 0.5).max()
        distances = [np.abs(normalize_blend(RAW, 1.7, blend=b) - 0.5).max() for b in blends]
        assert distances == sorted(distances, reverse=True)
        for b, distance in zip(blends, distances):
            assert distance <= (1 - b) * unblended + 1e-12
        np.testing.assert_allclose(normalize_blend(RAW, 1.7, blend=1.0), 0.5)

    def test_unclamped(self):
        # scale 2 on the field maximum overshoots 1
        assert normalize_blend(1.0, scale=2.0) == pytest.approx(2.0)
        assert normalize_blend(1.0, scale=2.0, invert=True) == pytest.approx(-1.0)

    def test_psychedelic_values(self):
        # (0 + 1) / 2 * 1.2 = 0.6 -> 0.15 + 0.42 = 0.57 -> inverted 0.43
        assert normalize_blend(0.0, 1.2, 0.3, True) == pytest.approx(0.43)


class TestToBytes:
    def test_dtype_and_rounding(self):
        result = to_bytes(np.array([0.0, 0.5, 1.0]))
        assert result.dtype == np.uint8
        np.testing.assert_array_equal(result, [0, 128, 255])

    def test_saturates_out_of_range(self):
        np.testing.assert_array_equal(to_bytes(np.array([-0.4, 1.8])), [0, 255])

    def test_non_finite(self):
        np.testing.assert_array_equal(
            to_bytes(np.array([np.nan, np.inf, -np.inf])), [0, 255, 0]
        )

    def test_luminance_policy_clips_first(self):
        lum = np.array([-0.2, 0.25, 1.3])
        np.testing.assert_array_equal(
            to_bytes(lum, ClampPolicy.LUMINANCE), to_bytes(np.clip(lum, 0, 1))
        )

    def test_policy_accepts_name(self):
        np.testing.assert_array_equal(to_bytes(np.array([0.2]), "luminance"), [51])
