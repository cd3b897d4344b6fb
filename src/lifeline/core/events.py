"""
Event catalog: narrative decision points and their choices.

The catalog is static input data.  It is validated once at ingestion
(unique ids, sane age ranges, a closed set of stat keys, known rarity and
category) and never mutated by the engine afterwards.  A malformed entry
raises ``DataContractViolation``.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from lifeline.core.errors import DataContractViolation
from lifeline.core.stats import STAT_MAX, STAT_MIN, is_stat

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "events.json"


class EventCategory(str, Enum):
    EDUCATION = "education"
    CAREER = "career"
    RELATIONSHIP = "relationship"
    HEALTH = "health"
    RANDOM = "random"
    MAJOR = "major"


class Rarity(str, Enum):
    """Rarity tiers; selection weights live in GameConfig.rarity_weights."""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


@dataclass
class AgeRange:
    min: int
    max: int

    def contains(self, age: int) -> bool:
        return self.min <= age <= self.max


@dataclass
class Prerequisites:
    """Gate on an event: stat floors plus required/forbidden history."""
    min_stats: dict[str, int] = field(default_factory=dict)
    required_events: list[str] = field(default_factory=list)
    forbidden_events: list[str] = field(default_factory=list)


@dataclass
class ChoiceRequirements(Prerequisites):
    """Prerequisites scoped to a single choice, plus optional age bounds."""
    min_age: int | None = None
    max_age: int | None = None


@dataclass
class Consequences:
    unlock_events: list[str] = field(default_factory=list)
    lock_events: list[str] = field(default_factory=list)


@dataclass
class GameChoice:
    id: str
    text: str
    effect: dict[str, int] = field(default_factory=dict)
    requirements: ChoiceRequirements | None = None
    consequences: Consequences | None = None


@dataclass
class GameEvent:
    id: str
    title: str
    description: str
    category: EventCategory
    age_range: AgeRange
    choices: list[GameChoice]
    prerequisites: Prerequisites | None = None
    rarity: Rarity = Rarity.COMMON
    is_repeatable: bool = False

    def get_choice(self, choice_id: str) -> GameChoice:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        raise KeyError(f"Choice '{choice_id}' not found in event '{self.id}'")


# ---------------------------------------------------------------------------
# Parsing / validation
# ---------------------------------------------------------------------------

def _require(d: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in d:
        raise DataContractViolation(f"{where}: missing required field '{key}'")
    return d[key]


def _int_field(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise DataContractViolation(f"{what} must be an integer, got {value!r}")
    return value


def _id_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DataContractViolation(f"{what} must be a list of event ids")
    return list(value)


def _stat_map(value: Any, what: str, bounded: bool) -> dict[str, int]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise DataContractViolation(f"{what} must be a mapping of stat -> int")
    result: dict[str, int] = {}
    for stat, amount in value.items():
        if not is_stat(stat):
            raise DataContractViolation(f"{what}: unknown stat '{stat}'")
        amount = _int_field(amount, f"{what}.{stat}")
        if bounded and not STAT_MIN <= amount <= STAT_MAX:
            raise DataContractViolation(
                f"{what}.{stat}={amount} outside [{STAT_MIN}, {STAT_MAX}]"
            )
        result[stat] = amount
    return result


def _parse_prerequisites(d: Mapping[str, Any] | None, where: str) -> Prerequisites | None:
    if d is None:
        return None
    return Prerequisites(
        min_stats=_stat_map(d.get("min_stats"), f"{where}.min_stats", bounded=True),
        required_events=_id_list(d.get("required_events"), f"{where}.required_events"),
        forbidden_events=_id_list(d.get("forbidden_events"), f"{where}.forbidden_events"),
    )


def _parse_requirements(d: Mapping[str, Any] | None, where: str) -> ChoiceRequirements | None:
    if d is None:
        return None
    min_age = d.get("min_age")
    max_age = d.get("max_age")
    if min_age is not None:
        min_age = _int_field(min_age, f"{where}.min_age")
    if max_age is not None:
        max_age = _int_field(max_age, f"{where}.max_age")
    if min_age is not None and max_age is not None and min_age > max_age:
        raise DataContractViolation(f"{where}: min_age {min_age} > max_age {max_age}")
    return ChoiceRequirements(
        min_stats=_stat_map(d.get("min_stats"), f"{where}.min_stats", bounded=True),
        required_events=_id_list(d.get("required_events"), f"{where}.required_events"),
        forbidden_events=_id_list(d.get("forbidden_events"), f"{where}.forbidden_events"),
        min_age=min_age,
        max_age=max_age,
    )


def parse_choice(d: Mapping[str, Any], where: str = "choice") -> GameChoice:
    """Build a GameChoice from a dict, validating stat keys."""
    choice_id = _require(d, "id", where)
    where = f"{where} '{choice_id}'"
    consequences = d.get("consequences")
    return GameChoice(
        id=choice_id,
        text=_require(d, "text", where),
        effect=_stat_map(d.get("effect"), f"{where}.effect", bounded=False),
        requirements=_parse_requirements(d.get("requirements"), f"{where}.requirements"),
        consequences=Consequences(
            unlock_events=_id_list(consequences.get("unlock_events"), f"{where}.unlock_events"),
            lock_events=_id_list(consequences.get("lock_events"), f"{where}.lock_events"),
        ) if consequences is not None else None,
    )


def parse_event(d: Mapping[str, Any]) -> GameEvent:
    """Build a GameEvent from a dict.  Raises DataContractViolation if malformed."""
    if not isinstance(d, Mapping):
        raise DataContractViolation(f"Event entry must be an object, got {type(d).__name__}")
    event_id = _require(d, "id", "event")
    where = f"event '{event_id}'"

    age_range = _require(d, "age_range", where)
    if not isinstance(age_range, Mapping):
        raise DataContractViolation(f"{where}: age_range must be an object")
    lo = _int_field(_require(age_range, "min", f"{where}.age_range"), f"{where}.age_range.min")
    hi = _int_field(_require(age_range, "max", f"{where}.age_range"), f"{where}.age_range.max")
    if lo < 0 or lo > hi:
        raise DataContractViolation(f"{where}: invalid age range [{lo}, {hi}]")

    raw_choices = _require(d, "choices", where)
    if not isinstance(raw_choices, list) or not raw_choices:
        raise DataContractViolation(f"{where}: needs at least one choice")
    choices = [parse_choice(c, f"{where} choice") for c in raw_choices]
    choice_ids = [c.id for c in choices]
    if len(set(choice_ids)) != len(choice_ids):
        raise DataContractViolation(f"{where}: duplicate choice ids {choice_ids}")

    try:
        category = EventCategory(_require(d, "category", where))
        rarity = Rarity(d.get("rarity", Rarity.COMMON.value))
    except ValueError as exc:
        raise DataContractViolation(f"{where}: {exc}") from exc

    return GameEvent(
        id=event_id,
        title=_require(d, "title", where),
        description=d.get("description", ""),
        category=category,
        age_range=AgeRange(lo, hi),
        choices=choices,
        prerequisites=_parse_prerequisites(d.get("prerequisites"), f"{where}.prerequisites"),
        rarity=rarity,
        is_repeatable=bool(d.get("is_repeatable", False)),
    )


class EventCatalog:
    """Ordered, read-only collection of GameEvents keyed by id."""

    def __init__(self, events: list[GameEvent]):
        self._events: tuple[GameEvent, ...] = tuple(events)
        self._by_id: dict[str, GameEvent] = {}
        for event in self._events:
            if event.id in self._by_id:
                raise DataContractViolation(f"Duplicate event id '{event.id}'")
            self._by_id[event.id] = event

    @classmethod
    def from_list(cls, entries: list[dict[str, Any]]) -> EventCatalog:
        if not isinstance(entries, list):
            raise DataContractViolation("Event catalog must be a list of events")
        return cls([parse_event(e) for e in entries])

    @classmethod
    def from_json(cls, s: str) -> EventCatalog:
        try:
            entries = json.loads(s)
        except json.JSONDecodeError as exc:
            raise DataContractViolation(f"Event catalog is not valid JSON: {exc}") from exc
        return cls.from_list(entries)

    @classmethod
    def load(cls, path: str | Path = DEFAULT_CATALOG_PATH) -> EventCatalog:
        """Load a catalog from a JSON file (the bundled catalog by default)."""
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    def get(self, event_id: str) -> GameEvent:
        """Look up an event; raises KeyError if unknown."""
        try:
            return self._by_id[event_id]
        except KeyError:
            raise KeyError(f"Event '{event_id}' not found") from None

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._by_id

    def __iter__(self) -> Iterator[GameEvent]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> list[GameEvent]:
        return list(self._events)
