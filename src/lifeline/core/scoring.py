"""
Derived score calculators.

All functions are pure.  The only randomness is the old-age death roll in
``should_game_end``, which takes an injectable generator.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from lifeline.core.errors import DataContractViolation
from lifeline.core.phases import LifePhase
from lifeline.core.stats import STAT_MAX, CharacterStats, Stat, is_stat

if TYPE_CHECKING:
    from lifeline.core.character import Character


WELL_BEING_WEIGHTS: dict[str, float] = {
    "health": 0.25,
    "happiness": 0.25,
    "intelligence": 0.15,
    "wealth": 0.15,
    "social": 0.20,
}

# Life expectancy: base age plus per-stat coefficients on (stat - 50)
BASE_LIFE_EXPECTANCY = 75
LIFE_EXPECTANCY_COEFFICIENTS: dict[str, float] = {
    "health": 0.3,
    "happiness": 0.1,
    "wealth": 0.15,
    "social": 0.05,
}

SUCCESS_RATIO_CAP = 1.5
SUCCESS_PROBABILITY_RANGE = (0.1, 1.0)

SCORE_ADULT_AGE = 18
SCORE_PER_ADULT_YEAR = 10
SCORE_PER_ACHIEVEMENT = 50

OLD_AGE_THRESHOLD = 80
DEATH_CHANCE_PER_YEAR = 0.1
DEATH_CHANCE_PER_MISSING_HEALTH = 0.02


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class EndReason(str, Enum):
    HEALTH_DEPLETED = "health_depleted"
    OLD_AGE = "old_age"


@dataclass
class EndCheck:
    ended: bool
    reason: EndReason | None = None


def well_being_score(stats: CharacterStats) -> int:
    """Weighted average of all five stats, rounded to an integer."""
    total = sum(stats.get(stat) * w for stat, w in WELL_BEING_WEIGHTS.items())
    return _round_half_up(total)


def success_probability(
    required: Mapping[str, int], actual: CharacterStats,
) -> float:
    """
    Chance a stat-gated attempt succeeds.

    Averages ``min(1.5, actual / required)`` over the required stats and
    clamps to [0.1, 1.0].  An empty requirement always succeeds.
    """
    if not required:
        return 1.0
    ratios = []
    for stat, threshold in required.items():
        if not is_stat(stat):
            raise DataContractViolation(f"Unknown stat '{stat}'")
        if threshold <= 0:
            raise DataContractViolation(
                f"Required threshold for '{stat}' must be positive, got {threshold}"
            )
        ratios.append(min(SUCCESS_RATIO_CAP, actual.get(stat) / threshold))
    lo, hi = SUCCESS_PROBABILITY_RANGE
    return float(np.clip(np.mean(ratios), lo, hi))


def synergy_bonus(stats: CharacterStats) -> dict[str, int]:
    """Bonuses from stat pairs that reinforce each other.

    Each rule is independent; when several touch the same stat the later
    rule's bonus replaces the earlier one.
    """
    bonuses: dict[str, int] = {}

    # Smart financial decisions
    if stats.intelligence > 70 and stats.wealth > 60:
        bonuses[Stat.WEALTH.value] = 2
    if stats.social > 70 and stats.happiness > 60:
        bonuses[Stat.HAPPINESS.value] = 1
        bonuses[Stat.SOCIAL.value] = 1
    if stats.health > 80 and stats.happiness > 70:
        bonuses[Stat.HEALTH.value] = 1
    # Leadership
    if stats.intelligence > 75 and stats.social > 75:
        bonuses[Stat.WEALTH.value] = 1
    return bonuses


def life_expectancy(stats: CharacterStats, age: int) -> int:
    """Expected age at death, never below ``age + 1``."""
    expected = BASE_LIFE_EXPECTANCY + sum(
        (stats.get(stat) - 50) * coef
        for stat, coef in LIFE_EXPECTANCY_COEFFICIENTS.items()
    )
    return max(age + 1, _round_half_up(expected))


def character_score(
    stats: CharacterStats, age: int, achievements: Sequence[str],
) -> int:
    """Leaderboard score: stat total, adult years lived and achievements."""
    age_bonus = max(0, age - SCORE_ADULT_AGE) * SCORE_PER_ADULT_YEAR
    return stats.total() + age_bonus + len(achievements) * SCORE_PER_ACHIEVEMENT


def death_chance(character: Character) -> float:
    """Old-age death probability for this year (0 below the threshold)."""
    if character.age < OLD_AGE_THRESHOLD:
        return 0.0
    return (
        (character.age - OLD_AGE_THRESHOLD) * DEATH_CHANCE_PER_YEAR
        + (STAT_MAX - character.stats.health) * DEATH_CHANCE_PER_MISSING_HEALTH
    )


def should_game_end(
    character: Character, rng: np.random.Generator | None = None,
) -> EndCheck:
    """
    End-of-life check.

    Health at zero ends the game deterministically.  From age 80 on, a
    uniform draw in [0, 1) below ``death_chance`` ends it.
    """
    if character.stats.health <= 0:
        return EndCheck(ended=True, reason=EndReason.HEALTH_DEPLETED)
    if character.age >= OLD_AGE_THRESHOLD:
        rng = rng or np.random.default_rng()
        if rng.random() < death_chance(character):
            return EndCheck(ended=True, reason=EndReason.OLD_AGE)
    return EndCheck(ended=False)


# ---------------------------------------------------------------------------
# Supplementary calculators
# ---------------------------------------------------------------------------

def diminishing_returns(current: int, change: float, max_value: int = STAT_MAX) -> float:
    """Scale a gain by the remaining headroom; losses apply linearly."""
    if change > 0:
        efficiency = (max_value - current) / max_value
        return min(max_value, current + change * efficiency)
    return max(0, current + change)


def stat_xp(current: int, improvement: int) -> int:
    """Experience needed to raise a stat; higher stats cost more."""
    return _round_half_up(improvement * 10 * (1 + current / 100))


def wealth_growth(current: float, interest_rate: float, years: int) -> float:
    """Compound growth of ``current`` over ``years``."""
    return current * (1 + interest_rate) ** years


_PHASE_EVENT_MODIFIERS: dict[LifePhase, float] = {
    LifePhase.ADOLESCENCE: 1.2,
    LifePhase.YOUNG_ADULT: 1.1,
    LifePhase.SENIOR: 0.8,
}


def event_probability(
    base_chance: float, stats: CharacterStats, phase: LifePhase,
) -> float:
    """Chance a random event fires this year, adjusted for phase and stats."""
    modifier = _PHASE_EVENT_MODIFIERS.get(LifePhase(phase), 1.0)
    if stats.health < 30:
        modifier *= 1.3
    if stats.happiness < 30:
        modifier *= 1.2
    if stats.wealth > 80:
        modifier *= 0.9
    return base_chance * modifier
