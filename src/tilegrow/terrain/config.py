"""Terrain generation configuration models."""

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from ..terrain_types import TerrainType


class HeightBandConfig(BaseModel):
    """Height scale and the band boundaries the classifier gates on."""

    min_height: float = Field(default=0.0, description="Global minimum height")
    max_height: float = Field(default=15.0, description="Global maximum height")
    deep_water_max: float = Field(default=2.0, description="Top of the deep water band")
    shallow_water_max: float = Field(
        default=3.5, description="Top of the shallow water band"
    )
    beach_max: float = Field(default=4.5, description="Top of the beach band")
    hill_min: float = Field(default=8.0, description="Bottom of the hill band")
    mountain_min: float = Field(default=11.0, description="Bottom of the mountain band")
    peak_min: float = Field(default=13.0, description="Bottom of the snow peak band")

    @model_validator(mode="after")
    def _check_band_order(self) -> "HeightBandConfig":
        bounds = [
            self.min_height,
            self.deep_water_max,
            self.shallow_water_max,
            self.beach_max,
            self.hill_min,
            self.mountain_min,
            self.peak_min,
            self.max_height,
        ]
        if any(lo >= hi for lo, hi in zip(bounds, bounds[1:])):
            raise ValueError(f"Height bands must be strictly increasing: {bounds}")
        return self


class ClimateConfig(BaseModel):
    """Moisture and temperature field parameters."""

    base_wavelength: float = Field(default=24.0, description="Noise wavelength in tiles")
    octaves: int = Field(default=3, description="Number of octaves for fBm")
    gain: float = Field(default=0.5, description="Amplitude multiplier per octave")
    latitude_weight: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Weight of latitude on temperature"
    )


class ClassificationConfig(BaseModel):
    """Climate thresholds used by the tile classifier."""

    hot_threshold: float = Field(default=0.65, description="Temperature above this is hot")
    cold_threshold: float = Field(default=0.25, description="Temperature below this is cold")
    dry_threshold: float = Field(default=0.3, description="Moisture below this is dry")
    wet_threshold: float = Field(default=0.8, description="Moisture above this is wetland")
    dense_vegetation_threshold: float = Field(
        default=0.7, description="Moisture above this grows dense forest"
    )
    vegetation_threshold: float = Field(
        default=0.5, description="Moisture above this grows forest"
    )


class GrowthConfig(BaseModel):
    """Seeding and propagation parameters."""

    seed_floor: int = Field(default=3, ge=1, description="Minimum number of seeds")
    seed_divisor: float = Field(
        default=4.0, gt=0, description="Seeds = sqrt(width * depth) / divisor"
    )
    max_height_delta: float = Field(
        default=2.0, gt=0, description="Max height step between 4-neighbors"
    )
    retry_budget: int = Field(default=5, ge=1, description="Attempts before fallback")
    mountain_damping: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="Chance to cap a valid range at the hill maximum",
    )
    relief_jitter: float = Field(
        default=0.3, ge=0.0, description="Max upward bump for hills and mountains"
    )


class SmoothingConfig(BaseModel):
    """Smoothing pass parameters."""

    threshold: float = Field(default=2.0, description="Deviation that triggers a nudge")
    step: float = Field(default=1.0, gt=0, description="Height nudge per pass")
    climate_blend: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Weight of neighbor climate mean"
    )


class FeatureConfig(BaseModel):
    """Feature placement parameters."""

    enabled: bool = Field(default=True, description="Run the feature pass")
    probability_scale: float = Field(
        default=1.0, ge=0.0, description="Multiplier on base spawn probabilities"
    )


class TerrainConfig(BaseModel):
    """Complete terrain generation configuration."""

    seed: int | None = Field(default=None, description="Random seed (None = fresh)")
    width: int = Field(default=64, description="Grid width in tiles")
    depth: int = Field(default=64, description="Grid depth in tiles")

    bands: HeightBandConfig = Field(default_factory=HeightBandConfig)
    climate: ClimateConfig = Field(default_factory=ClimateConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    growth: GrowthConfig = Field(default_factory=GrowthConfig)
    smoothing: SmoothingConfig = Field(default_factory=SmoothingConfig)
    features: FeatureConfig = Field(default_factory=FeatureConfig)

    weights: dict[TerrainType, float] = Field(
        default_factory=dict, description="Overrides for terrain selection weights"
    )


def load_config(config_path: Path) -> TerrainConfig:
    """Load terrain configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed TerrainConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return TerrainConfig.model_validate(data)
