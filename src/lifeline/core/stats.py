"""
Bounded stat model.

Five integer stats, each held in [STAT_MIN, STAT_MAX].  Every stat
mutation in the engine goes through ``apply_delta`` so gains and losses
saturate at the bounds instead of overflowing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from lifeline.core.errors import DataContractViolation

STAT_MIN = 0
STAT_MAX = 100


class Stat(str, Enum):
    """The closed set of character attributes."""
    HEALTH = "health"
    HAPPINESS = "happiness"
    INTELLIGENCE = "intelligence"
    WEALTH = "wealth"
    SOCIAL = "social"


STAT_NAMES: tuple[str, ...] = tuple(s.value for s in Stat)


def is_stat(name: str) -> bool:
    """True if ``name`` is a recognised stat identifier."""
    return name in STAT_NAMES


def clamp(value: float) -> int:
    """Saturate a value into the stat range."""
    return int(np.clip(value, STAT_MIN, STAT_MAX))


def apply_delta(current: int, delta: int) -> int:
    """Add a signed delta to a stat value with saturating arithmetic."""
    return clamp(current + delta)


def _check_value(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise DataContractViolation(
            f"Stat '{name}' must be an integer, got {value!r}"
        )
    if not STAT_MIN <= value <= STAT_MAX:
        raise DataContractViolation(
            f"Stat '{name}'={value} outside [{STAT_MIN}, {STAT_MAX}]"
        )
    return int(value)


@dataclass
class CharacterStats:
    """Five bounded stats.  Treated as a value: ``apply`` returns a new instance."""

    health: int = 50
    happiness: int = 50
    intelligence: int = 50
    wealth: int = 50
    social: int = 50

    def __post_init__(self) -> None:
        for name in STAT_NAMES:
            setattr(self, name, _check_value(name, getattr(self, name)))

    def get(self, stat: str | Stat) -> int:
        return getattr(self, Stat(stat).value)

    def apply(self, deltas: Mapping[str, int]) -> CharacterStats:
        """Return new stats with each delta applied through ``apply_delta``.

        Keys that are not stats are ignored.  Each stat is clamped once,
        so callers must sum simultaneous deltas before calling.
        """
        values = self.to_dict()
        for key, delta in deltas.items():
            name = key.value if isinstance(key, Stat) else key
            if name in values:
                values[name] = apply_delta(values[name], int(delta))
        return CharacterStats(**values)

    def total(self) -> int:
        return sum(self.to_dict().values())

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in STAT_NAMES}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> CharacterStats:
        """Build from a mapping that must contain exactly the five stats."""
        missing = [n for n in STAT_NAMES if n not in d]
        extra = [k for k in d if k not in STAT_NAMES]
        if missing or extra:
            raise DataContractViolation(
                f"Stats must be exactly {list(STAT_NAMES)} "
                f"(missing={missing}, unexpected={extra})"
            )
        return cls(**{n: d[n] for n in STAT_NAMES})

    @classmethod
    def uniform(cls, value: int) -> CharacterStats:
        return cls(**{n: value for n in STAT_NAMES})
