"""Tests for the terrain rule set."""

import pytest

from tilegrow.exceptions import RuleSetGapError
from tilegrow.terrain.config import FeatureConfig, HeightBandConfig, TerrainConfig
from tilegrow.terrain.rules import (
    DEFAULT_ADJACENCY,
    DEFAULT_FEATURE_PROBABILITIES,
    DEFAULT_WEIGHTS,
    ContextRule,
    HeightRange,
    TerrainRuleSet,
    build_rule_set,
    default_height_ranges,
)
from tilegrow.terrain_types import FeatureType, TerrainType


def _make_rules(**overrides) -> TerrainRuleSet:
    kwargs = dict(
        height_ranges=default_height_ranges(HeightBandConfig()),
        adjacency=DEFAULT_ADJACENCY,
        weights=DEFAULT_WEIGHTS,
        feature_probabilities=DEFAULT_FEATURE_PROBABILITIES,
        global_range=HeightRange(0.0, 15.0),
    )
    kwargs.update(overrides)
    return TerrainRuleSet(**kwargs)


class TestHeightRange:
    """Tests for HeightRange."""

    def test_contains_is_closed(self) -> None:
        r = HeightRange(2.0, 4.0)
        assert r.contains(2.0)
        assert r.contains(4.0)
        assert not r.contains(4.01)

    def test_clamp(self) -> None:
        r = HeightRange(2.0, 4.0)
        assert r.clamp(1.0) == 2.0
        assert r.clamp(5.0) == 4.0
        assert r.clamp(3.0) == 3.0

    def test_midpoint_and_span(self) -> None:
        r = HeightRange(2.0, 6.0)
        assert r.midpoint == 4.0
        assert r.span == 4.0

    def test_empty_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            HeightRange(5.0, 4.0)


class TestRuleSetValidation:
    """Construction rejects incomplete or malformed tables."""

    def test_defaults_accepted(self) -> None:
        rules = _make_rules()
        assert rules.global_range == HeightRange(0.0, 15.0)

    def test_missing_height_range(self) -> None:
        ranges = default_height_ranges(HeightBandConfig())
        del ranges[TerrainType.SWAMP]
        with pytest.raises(RuleSetGapError, match="swamp"):
            _make_rules(height_ranges=ranges)

    def test_missing_adjacency(self) -> None:
        adjacency = dict(DEFAULT_ADJACENCY)
        del adjacency[TerrainType.DESERT]
        with pytest.raises(RuleSetGapError, match="desert"):
            _make_rules(adjacency=adjacency)

    def test_missing_weight(self) -> None:
        weights = dict(DEFAULT_WEIGHTS)
        del weights[TerrainType.HILLS]
        with pytest.raises(RuleSetGapError):
            _make_rules(weights=weights)

    def test_negative_weight(self) -> None:
        weights = dict(DEFAULT_WEIGHTS)
        weights[TerrainType.HILLS] = -0.1
        with pytest.raises(RuleSetGapError):
            _make_rules(weights=weights)

    def test_all_zero_weights(self) -> None:
        weights = {t: 0.0 for t in TerrainType}
        with pytest.raises(RuleSetGapError):
            _make_rules(weights=weights)

    def test_none_feature_rejected(self) -> None:
        probabilities = {TerrainType.GRASSLAND: {FeatureType.NONE: 0.1}}
        with pytest.raises(RuleSetGapError):
            _make_rules(feature_probabilities=probabilities)

    def test_probability_out_of_range(self) -> None:
        probabilities = {TerrainType.GRASSLAND: {FeatureType.VILLAGE: 1.5}}
        with pytest.raises(RuleSetGapError):
            _make_rules(feature_probabilities=probabilities)

    def test_missing_feature_table_means_none(self) -> None:
        rules = _make_rules(feature_probabilities={})
        assert dict(rules.feature_probabilities(TerrainType.GRASSLAND)) == {}


class TestAdjacency:
    """Compatibility lookups."""

    def test_symmetric_for_defaults(self) -> None:
        rules = build_rule_set()
        for a in TerrainType:
            for b in TerrainType:
                assert rules.is_compatible(a, b) == rules.is_compatible(b, a)

    def test_one_way_listing_is_closed(self) -> None:
        adjacency = {t: frozenset({t}) for t in TerrainType}
        adjacency[TerrainType.DESERT] = frozenset({TerrainType.DESERT, TerrainType.SWAMP})
        rules = _make_rules(adjacency=adjacency)

        assert rules.is_compatible(TerrainType.SWAMP, TerrainType.DESERT)
        assert TerrainType.DESERT in rules.compatible_types(TerrainType.SWAMP)

    def test_deep_water_never_touches_land(self) -> None:
        rules = build_rule_set()
        assert not rules.is_compatible(TerrainType.DEEP_WATER, TerrainType.GRASSLAND)
        assert not rules.is_compatible(TerrainType.DEEP_WATER, TerrainType.MOUNTAINS)

    def test_every_type_compatible_with_itself(self) -> None:
        rules = build_rule_set()
        for terrain in TerrainType:
            assert rules.is_compatible(terrain, terrain)

    def test_climate_band_edges_compatible(self) -> None:
        """Types on either side of a band edge under one climate may touch."""
        rules = build_rule_set()
        # Wet land below and above hill_min
        assert rules.is_compatible(TerrainType.SWAMP, TerrainType.HILLS)
        # Hot dry land below and above peak_min
        assert rules.is_compatible(TerrainType.WASTELAND, TerrainType.SNOW_PEAKS)
        # Hot dry land below and above hill_min
        assert rules.is_compatible(TerrainType.DESERT, TerrainType.WASTELAND)


class TestSelectType:
    """Weighted selection over the cumulative distribution."""

    def test_lowest_draw_picks_first_positive(self) -> None:
        rules = build_rule_set()
        assert rules.select_type(0.0) == TerrainType.DEEP_WATER

    def test_top_draw_picks_last_positive(self) -> None:
        weights = dict(DEFAULT_WEIGHTS)
        weights[TerrainType.WASTELAND] = 0.0
        rules = _make_rules(weights=weights)
        assert rules.select_type(0.9999999) == TerrainType.SWAMP
        assert rules.select_type(1.0) == TerrainType.SWAMP

    def test_zero_weight_never_selected(self) -> None:
        weights = {t: 0.0 for t in TerrainType}
        weights[TerrainType.FOREST] = 1.0
        rules = _make_rules(weights=weights)
        for u in (0.0, 0.25, 0.5, 0.99):
            assert rules.select_type(u) == TerrainType.FOREST


class TestBuildRuleSet:
    """Configuration feeds the default tables."""

    def test_weight_override(self) -> None:
        config = TerrainConfig(weights={TerrainType.DESERT: 0.5})
        rules = build_rule_set(config)
        assert rules.weight(TerrainType.DESERT) == 0.5
        assert rules.weight(TerrainType.HILLS) == DEFAULT_WEIGHTS[TerrainType.HILLS]

    def test_probability_scale(self) -> None:
        config = TerrainConfig(features=FeatureConfig(probability_scale=2.0))
        rules = build_rule_set(config)
        assert rules.feature_probabilities(TerrainType.BEACH)[FeatureType.SHIPWRECK] == pytest.approx(0.04)

    def test_ranges_follow_bands(self) -> None:
        rules = build_rule_set()
        assert rules.height_range(TerrainType.DEEP_WATER) == HeightRange(0.0, 2.0)
        assert rules.height_range(TerrainType.HILLS) == HeightRange(8.0, 11.0)
        assert rules.height_range(TerrainType.SNOW_PEAKS) == HeightRange(11.0, 15.0)


class TestContextRule:
    """Neighborhood conditions on contextual feature rules."""

    def test_requires_terrain(self) -> None:
        rule = ContextRule(
            FeatureType.CAVE_ENTRANCE, frozenset({TerrainType.MOUNTAINS}), None, 0.05
        )
        assert rule.applies_to(TerrainType.MOUNTAINS, set())
        assert not rule.applies_to(TerrainType.HILLS, set())

    def test_requires_neighbor_feature(self) -> None:
        rule = ContextRule(FeatureType.TEMPLE, None, FeatureType.STANDING_STONES, 0.25)
        assert not rule.applies_to(TerrainType.GRASSLAND, {FeatureType.RUINS})
        assert rule.applies_to(TerrainType.GRASSLAND, {FeatureType.STANDING_STONES})
