"""
Character dataclass and per-choice history records.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from lifeline.core.errors import DataContractViolation
from lifeline.core.phases import LifePhase, classify_life_phase
from lifeline.core.stats import CharacterStats


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StatChange:
    """One signed change to one stat, with the reason and the age it happened."""
    stat: str
    delta: int
    reason: str = ""
    age: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"stat": self.stat, "delta": self.delta, "reason": self.reason, "age": self.age}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> StatChange:
        return cls(
            stat=d["stat"], delta=int(d["delta"]),
            reason=d.get("reason", ""), age=int(d.get("age", 0)),
        )


@dataclass
class ChoiceRecord:
    """A resolved choice, kept for the life log."""
    event_id: str
    choice_id: str
    age: int
    stat_changes: list[StatChange] = field(default_factory=list)
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "choice_id": self.choice_id,
            "age": self.age,
            "stat_changes": [sc.to_dict() for sc in self.stat_changes],
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ChoiceRecord:
        return cls(
            event_id=d["event_id"],
            choice_id=d["choice_id"],
            age=int(d["age"]),
            stat_changes=[StatChange.from_dict(sc) for sc in d.get("stat_changes", [])],
            timestamp=datetime.fromisoformat(d["timestamp"]),
        )


@dataclass
class Character:
    """A simulated life: identity, age, five bounded stats."""

    name: str
    age: int
    stats: CharacterStats
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    created_at: datetime = field(default_factory=_now)
    last_played_at: datetime = field(default_factory=_now)
    completed_events: list[str] = field(default_factory=list)

    # Fractional passive decay not yet applied as whole points
    decay_carry: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.age, bool) or not isinstance(self.age, int) or self.age < 0:
            raise DataContractViolation(f"Age must be a non-negative integer, got {self.age!r}")

    @property
    def life_phase(self) -> LifePhase:
        return classify_life_phase(self.age)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "stats": self.stats.to_dict(),
            "createdAt": self.created_at.isoformat(),
            "lastPlayedAt": self.last_played_at.isoformat(),
            "completedEvents": list(self.completed_events),
            "decayCarry": dict(self.decay_carry),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Character:
        """Reconstruct a Character; raises on malformed data."""
        now = _now()
        return cls(
            id=d.get("id") or uuid.uuid4().hex[:8],
            name=d["name"],
            age=d["age"],
            stats=CharacterStats.from_dict(d["stats"]),
            created_at=datetime.fromisoformat(d["createdAt"]) if d.get("createdAt") else now,
            last_played_at=datetime.fromisoformat(d["lastPlayedAt"]) if d.get("lastPlayedAt") else now,
            completed_events=list(d.get("completedEvents", [])),
            decay_carry={k: float(v) for k, v in d.get("decayCarry", {}).items()},
        )

    def __repr__(self) -> str:
        return (
            f"Character(id={self.id!r}, name={self.name!r}, age={self.age}, "
            f"phase={self.life_phase.value}, stats={self.stats.to_dict()})"
        )
