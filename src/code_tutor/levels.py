"""Level calculation from accumulated experience points.

Levels are linear: every ``XP_PER_LEVEL`` points is one level, starting at
level 1 with zero XP. The level is never stored, only derived.
"""
from dataclasses import dataclass

XP_PER_LEVEL = 100


@dataclass
class LevelStatus:
    level: int
    total_xp: int
    xp_into_level: int
    xp_for_next_level: int
    progress_fraction: float


def level_for_xp(xp: int) -> int:
    if xp < 0:
        raise ValueError(f"XP cannot be negative (got {xp})")
    return xp // XP_PER_LEVEL + 1


def xp_floor_for_level(level: int) -> int:
    """Minimum total XP needed to be at ``level``."""
    if level < 1:
        raise ValueError(f"Levels start at 1 (got {level})")
    return (level - 1) * XP_PER_LEVEL


def level_status(total_xp: int) -> LevelStatus:
    """Display values for a progress bar towards the next level."""
    level = level_for_xp(total_xp)
    floor = xp_floor_for_level(level)
    needed = xp_floor_for_level(level + 1) - floor
    into = total_xp - floor
    fraction = max(0.0, min(into / needed, 1.0))
    return LevelStatus(
        level=level,
        total_xp=total_xp,
        xp_into_level=into,
        xp_for_next_level=needed,
        progress_fraction=fraction,
    )
