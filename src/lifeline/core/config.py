"""
Master configuration for the Lifeline engine.

Tunable rule parameters live here: stat bounds, creation budget, decay
table, difficulty scaling and event rarity weights.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any

from lifeline.core.errors import DataContractViolation


@dataclass
class GameConfig:
    """
    Engine configuration.

    Use ``to_dict()`` / ``from_dict()`` for serialization and comparison.
    """

    # === Identity ===
    config_name: str = "default"
    random_seed: int | None = None

    # === Character creation ===
    starting_age: int = 18
    base_stat_value: int = 50
    starting_stat_points: int = 50
    allocation_min: int = 10
    allocation_max: int = 90

    # === Passive decay (per year, by life phase) ===
    # Wealth never decays passively.
    decay_table: dict[str, dict[str, float]] = field(default_factory=lambda: {
        "childhood": {},
        "adolescence": {},
        "young_adult": {"health": -0.5},
        "adult": {"health": -1.0, "happiness": -0.2},
        "middle_age": {"health": -1.5, "happiness": -0.3, "social": -0.2},
        "senior": {
            "health": -2.0, "happiness": -0.5,
            "social": -0.5, "intelligence": -0.3,
        },
    })
    difficulty_decay_multipliers: dict[str, float] = field(default_factory=lambda: {
        "easy": 0.5,
        "normal": 1.0,
        "hard": 1.5,
    })

    # === Event selection ===
    rarity_weights: dict[str, int] = field(default_factory=lambda: {
        "common": 10,
        "uncommon": 5,
        "rare": 2,
        "legendary": 1,
    })

    # Fold the synergy bonus into each year tick
    synergy_on_tick: bool = False

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> GameConfig:
        """Deserialize from a dict.  Unknown parameter names raise."""
        params = {k: v for k, v in d.items() if not k.startswith("_")}
        unknown = set(params) - {f.name for f in fields(cls)}
        if unknown:
            raise DataContractViolation(f"Unknown config parameters: {sorted(unknown)}")
        return cls(**params)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> GameConfig:
        return cls.from_dict(json.loads(s))

    def decay_multiplier(self, difficulty: str) -> float:
        """Decay scaling for a difficulty level (unknown levels scale by 1)."""
        return self.difficulty_decay_multipliers.get(difficulty, 1.0)

    def diff(self, other: GameConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs
