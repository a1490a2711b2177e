"""Tests for noise generation functions."""

import numpy as np

from tilegrow.terrain.noise import fbm_noise, normalize_seed, smooth_noise, to_unit_interval


class TestSmoothNoise:
    """Tests for a single noise octave."""

    def test_output_shape(self) -> None:
        result = smooth_noise(40, 20, np.random.default_rng(1), wavelength=10)
        assert result.shape == (20, 40)

    def test_constant_field_survives(self) -> None:
        """A 1x1 field has zero spread and is left unnormalized."""
        result = smooth_noise(1, 1, np.random.default_rng(1), wavelength=10)
        assert result.shape == (1, 1)
        assert np.isfinite(result).all()


class TestFbmNoise:
    """Tests for fBm noise generation."""

    def test_output_shape(self) -> None:
        result = fbm_noise(100, 50, seed=42, base_wavelength=20)
        assert result.shape == (50, 100)

    def test_deterministic_with_same_seed(self) -> None:
        result1 = fbm_noise(32, 32, seed=123, base_wavelength=12)
        result2 = fbm_noise(32, 32, seed=123, base_wavelength=12)
        np.testing.assert_array_equal(result1, result2)

    def test_different_seed_different_output(self) -> None:
        result1 = fbm_noise(32, 32, seed=123, base_wavelength=12)
        result2 = fbm_noise(32, 32, seed=456, base_wavelength=12)
        assert not np.allclose(result1, result2)

    def test_negative_seed(self) -> None:
        result1 = fbm_noise(16, 16, seed=-5, base_wavelength=8)
        result2 = fbm_noise(16, 16, seed=-5, base_wavelength=8)
        np.testing.assert_array_equal(result1, result2)

    def test_output_dtype(self) -> None:
        result = fbm_noise(16, 16, seed=42, base_wavelength=8)
        assert result.dtype == np.float32

    def test_output_range_reasonable(self) -> None:
        result = fbm_noise(64, 64, seed=42, base_wavelength=16)
        assert result.min() >= -2.5
        assert result.max() <= 2.5


class TestToUnitInterval:
    """Tests for mapping noise onto [0, 1]."""

    def test_maps_and_clips(self) -> None:
        noise = np.array([-3.0, -1.0, 0.0, 1.0, 3.0], dtype=np.float32)
        result = to_unit_interval(noise)
        np.testing.assert_array_almost_equal(result, [0.0, 0.0, 0.5, 1.0, 1.0])


class TestNormalizeSeed:
    """Tests for seed normalization."""

    def test_non_negative_unchanged(self) -> None:
        assert normalize_seed(0) == 0
        assert normalize_seed(42) == 42

    def test_negative_wraps(self) -> None:
        assert normalize_seed(-1) == 2**64 - 1
        assert normalize_seed(-5) >= 0

    def test_wide_seed_fits_64_bits(self) -> None:
        assert normalize_seed(2**70 + 3) == 3
