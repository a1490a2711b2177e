"""Climate fields: moisture and temperature over the grid."""

import numpy as np
from numpy.typing import NDArray

from .config import ClimateConfig
from .noise import fbm_noise, to_unit_interval

# Seed offsets keep the two climate streams independent
MOISTURE_SEED_OFFSET = 300
TEMPERATURE_SEED_OFFSET = 700


def generate_field(
    width: int,
    depth: int,
    seed: int,
    config: ClimateConfig,
) -> NDArray[np.float32]:
    """Generate a coherent scalar field with one value per cell in [0, 1].

    Args:
        width: Grid width in tiles.
        depth: Grid depth in tiles.
        seed: Random seed for this field.
        config: Noise parameters.

    Returns:
        2D array of shape (depth, width).
    """
    noise = fbm_noise(
        width,
        depth,
        seed,
        config.base_wavelength,
        octaves=config.octaves,
        gain=config.gain,
    )
    return to_unit_interval(noise)


def make_moisture(
    width: int,
    depth: int,
    seed: int,
    config: ClimateConfig,
) -> NDArray[np.float32]:
    """Generate the moisture field."""
    return generate_field(width, depth, seed + MOISTURE_SEED_OFFSET, config)


def make_temperature(
    width: int,
    depth: int,
    seed: int,
    config: ClimateConfig,
) -> NDArray[np.float32]:
    """Generate the temperature field.

    Blends noise with a latitude gradient that is warmest along the middle
    row and coldest at the top and bottom edges.

    Args:
        width: Grid width in tiles.
        depth: Grid depth in tiles.
        seed: Run seed.
        config: Climate parameters.

    Returns:
        2D temperature array of shape (depth, width) in [0, 1].
    """
    noise = generate_field(width, depth, seed + TEMPERATURE_SEED_OFFSET, config)

    latitude = _latitude_gradient(depth)[:, np.newaxis]
    weight = config.latitude_weight
    temperature = weight * latitude + (1.0 - weight) * noise

    return np.clip(temperature, 0.0, 1.0).astype(np.float32)


def _latitude_gradient(depth: int) -> NDArray[np.float32]:
    """Per-row warmth in [0, 1]: 1 at the equator row, 0 at the poles."""
    if depth == 1:
        return np.ones(1, dtype=np.float32)
    rows = np.arange(depth, dtype=np.float32)
    half = (depth - 1) / 2.0
    return ((np.cos((rows - half) / half * np.pi) + 1.0) / 2.0).astype(np.float32)
