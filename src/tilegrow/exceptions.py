"""Custom exceptions for terrain generation."""


class TerrainError(Exception):
    """Base exception for terrain generation errors."""

    pass


class InvalidDimensionsError(TerrainError):
    """Raised when a grid is requested with a non-positive width or depth."""

    def __init__(self, width: int, depth: int):
        super().__init__(
            f"Grid dimensions must be positive, got width={width} depth={depth}"
        )
        self.width = width
        self.depth = depth


class RuleSetGapError(TerrainError):
    """Raised when a rule table does not cover every terrain type."""

    pass


class UnreachableCellsError(TerrainError):
    """Raised when undecided cells reach post-processing."""

    def __init__(self, count: int):
        super().__init__(f"{count} cells are still undecided")
        self.count = count
