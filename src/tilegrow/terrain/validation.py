"""Post-generation validation of a tile grid."""

import structlog

from .grid import TerrainGrid
from .propagation import PropagationStats
from .rules import TerrainRuleSet

logger = structlog.get_logger()


class ValidationResult:
    """Result of terrain validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True
        self.out_of_range: list[tuple[int, int]] = []
        self.incompatible_pairs: list[tuple[int, int]] = []
        self.excused_pairs: list[tuple[int, int]] = []

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_terrain(
    grid: TerrainGrid,
    rules: TerrainRuleSet,
    stats: PropagationStats | None = None,
    smoothed: set[int] | None = None,
    fallback_tolerance: float = 0.05,
) -> ValidationResult:
    """Check a grid against the rule set.

    Pairs of incompatible 4-neighbors touching a recorded fallback cell, or a
    cell reclassified by smoothing, are excused; any other incompatible pair
    is an error.

    Args:
        grid: Grid to check.
        rules: Rule set the grid was generated with.
        stats: Propagation counters; without them no fallback is excused.
        smoothed: Cells nudged by the smoothing pass.
        fallback_tolerance: Fallback fraction above which a warning is added.

    Returns:
        ValidationResult with any errors and warnings.
    """
    result = ValidationResult()
    fallbacks = stats.fallbacks if stats is not None else set()

    _check_coverage(grid, result)
    _check_height_ranges(grid, rules, fallbacks, result)
    _check_adjacency(grid, rules, fallbacks | (smoothed or set()), result)

    if stats is not None and stats.fallback_fraction > fallback_tolerance:
        result.add_warning(
            f"Fallback fraction {stats.fallback_fraction:.1%} exceeds "
            f"{fallback_tolerance:.1%}"
        )

    if result.passed:
        logger.info("terrain_validation_passed", warnings=len(result.warnings))
    else:
        logger.warning("terrain_validation_failed", errors=result.errors)

    return result


def _check_coverage(grid: TerrainGrid, result: ValidationResult) -> None:
    undecided = grid.undecided_count()
    if undecided:
        result.add_error(f"{undecided} cells are undecided")


def _check_height_ranges(
    grid: TerrainGrid,
    rules: TerrainRuleSet,
    fallbacks: set[int],
    result: ValidationResult,
) -> None:
    """Check every height lies within its type's range."""
    for x, z, tile in grid.tiles():
        if rules.height_range(tile.type).contains(tile.height):
            continue
        index = grid.index(x, z)
        result.out_of_range.append((x, z))
        if index not in fallbacks:
            result.add_error(
                f"Height {tile.height:.2f} at ({x}, {z}) outside {tile.type.value} range"
            )


def _check_adjacency(
    grid: TerrainGrid,
    rules: TerrainRuleSet,
    excused: set[int],
    result: ValidationResult,
) -> None:
    """Check each 4-connected pair once (right and down neighbors)."""
    for x, z, tile in grid.tiles():
        index = grid.index(x, z)
        for dx, dz in ((1, 0), (0, 1)):
            if not grid.in_bounds(x + dx, z + dz):
                continue
            other_index = grid.index(x + dx, z + dz)
            other = grid.at(other_index)
            if other is None or rules.is_compatible(tile.type, other.type):
                continue
            pair = (index, other_index)
            if index in excused or other_index in excused:
                result.excused_pairs.append(pair)
            else:
                result.incompatible_pairs.append(pair)

    if result.incompatible_pairs:
        result.add_error(
            f"{len(result.incompatible_pairs)} incompatible neighbor pairs "
            "not explained by fallback or smoothing"
        )
