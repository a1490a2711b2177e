"""Coherent noise for climate fields.

Octaves are Gaussian-filtered white noise summed as fractal Brownian
motion, which is cheap on the small grids the growth engine works on.
"""

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

# numpy seeds must be non-negative; wider ints wrap into 64 bits
SEED_MASK = 0xFFFF_FFFF_FFFF_FFFF


def normalize_seed(seed: int) -> int:
    """Map any integer seed onto the non-negative range numpy accepts."""
    return seed & SEED_MASK


def smooth_noise(
    width: int,
    depth: int,
    rng: np.random.Generator,
    wavelength: float,
) -> NDArray[np.float32]:
    """Generate one octave of smooth noise.

    Args:
        width: Output width.
        depth: Output depth (rows).
        rng: Random number generator.
        wavelength: Approximate feature size in tiles.

    Returns:
        2D noise array of shape (depth, width), roughly in [-1, 1].
    """
    white_noise = rng.standard_normal((depth, width)).astype(np.float32)

    sigma = max(wavelength / 3.0, 1e-3)
    smoothed = ndimage.gaussian_filter(white_noise, sigma=sigma, mode="wrap")

    std = np.std(smoothed)
    if std > 0:
        smoothed /= 2.5 * std

    return smoothed


def fbm_noise(
    width: int,
    depth: int,
    seed: int,
    base_wavelength: float,
    octaves: int = 3,
    lacunarity: float = 2.0,
    gain: float = 0.5,
) -> NDArray[np.float32]:
    """Sum octaves of smooth noise at increasing frequency.

    Args:
        width: Output width in tiles.
        depth: Output depth in tiles.
        seed: Random seed; each octave derives its own stream from it.
        base_wavelength: Wavelength of the lowest octave in tiles.
        octaves: Number of noise layers to sum.
        lacunarity: Frequency multiplier between octaves.
        gain: Amplitude multiplier between octaves.

    Returns:
        2D array of shape (depth, width), roughly in [-1, 1].
    """
    result = np.zeros((depth, width), dtype=np.float32)

    wavelength = base_wavelength
    amplitude = 1.0
    max_amplitude = 0.0

    for i in range(octaves):
        octave_rng = np.random.default_rng(normalize_seed(seed + i * 1000))
        result += amplitude * smooth_noise(width, depth, octave_rng, wavelength)
        max_amplitude += amplitude
        wavelength /= lacunarity
        amplitude *= gain

    if max_amplitude > 0:
        result /= max_amplitude
    return result


def to_unit_interval(noise: NDArray[np.float32]) -> NDArray[np.float32]:
    """Map noise in roughly [-1, 1] onto [0, 1], clipping the tails."""
    return np.clip((noise + 1.0) / 2.0, 0.0, 1.0).astype(np.float32)
