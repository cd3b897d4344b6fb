"""
Game session: owns the character, event history, year counter and
settings, and exposes the lifecycle used by a presentation layer.

States::

    not_started -> active <-> paused
          ^                      |
          +------ reset ---------+

Every mutation builds a complete new state and swaps it in, so callers
see either the fully applied update or the unchanged prior snapshot.
Precondition failures (no character, paused game, ineligible choice) are
not errors: the prior snapshot is returned.

Persistence goes through a ``SnapshotStorage`` capability.  Saving is
explicit (``save_game``); ``GameSettings.auto_save`` turns on a save after
each successful gameplay mutation.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import numpy as np

from lifeline.core.character import Character, ChoiceRecord
from lifeline.core.choices import ChoiceProcessor, EventResult
from lifeline.core.config import GameConfig
from lifeline.core.decay import DecayEngine, DecayTick
from lifeline.core.eligibility import EligibilityResolver
from lifeline.core.errors import DataContractViolation
from lifeline.core.events import EventCatalog, GameChoice, GameEvent
from lifeline.core.phases import classify_life_phase
from lifeline.core.scoring import EndCheck, event_probability, should_game_end, synergy_bonus
from lifeline.core.stats import is_stat

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
DEFAULT_STORAGE_KEY = "life-line-game-storage"

DIFFICULTIES = ("easy", "normal", "hard")
LANGUAGES = ("tr", "en")


class SnapshotStorage(ABC):
    """Load/save capability for session snapshots."""

    @abstractmethod
    def load(self, key: str) -> dict[str, Any] | None:
        """Return the stored snapshot for ``key``, or None if absent."""

    @abstractmethod
    def save(self, key: str, snapshot: dict[str, Any]) -> bool:
        """Store ``snapshot`` under ``key``; False on failure."""


class SessionStatus(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    PAUSED = "paused"


@dataclass
class GameSettings:
    sound_enabled: bool = True
    music_enabled: bool = True
    notifications: bool = True
    auto_save: bool = False
    difficulty: str = "normal"   # easy | normal | hard
    language: str = "tr"         # tr | en

    def __post_init__(self) -> None:
        if self.difficulty not in DIFFICULTIES:
            raise DataContractViolation(f"Unknown difficulty '{self.difficulty}'")
        if self.language not in LANGUAGES:
            raise DataContractViolation(f"Unknown language '{self.language}'")

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> GameSettings:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


def _id_list(d: Mapping[str, Any], key: str) -> list[str]:
    ids = d.get(key, [])
    if not isinstance(ids, list) or not all(isinstance(e, str) for e in ids):
        raise DataContractViolation(f"{key} must be a list of ids")
    return list(ids)


@dataclass
class SessionState:
    """Everything a session owns.  Returned to callers as a detached copy."""

    character: Character | None = None
    completed_events: list[str] = field(default_factory=list)
    current_event_id: str | None = None
    game_year: int = 0
    settings: GameSettings = field(default_factory=GameSettings)
    is_game_started: bool = False
    is_paused: bool = False
    unlocked_events: list[str] = field(default_factory=list)
    locked_events: list[str] = field(default_factory=list)
    choice_log: list[ChoiceRecord] = field(default_factory=list)

    @property
    def status(self) -> SessionStatus:
        if not self.is_game_started or self.character is None:
            return SessionStatus.NOT_STARTED
        if self.is_paused:
            return SessionStatus.PAUSED
        return SessionStatus.ACTIVE

    # ------------------------------------------------------------------
    # Snapshot (persisted subset)
    # ------------------------------------------------------------------
    def to_snapshot(self) -> dict[str, Any]:
        """Serializable record for storage."""
        return {
            "version": SNAPSHOT_VERSION,
            "character": self.character.to_dict() if self.character else None,
            "completedEvents": list(self.completed_events),
            "gameYear": self.game_year,
            "soundEnabled": self.settings.sound_enabled,
            "musicEnabled": self.settings.music_enabled,
            "isGameStarted": self.is_game_started,
            "settings": self.settings.to_dict(),
            "unlockedEvents": list(self.unlocked_events),
            "lockedEvents": list(self.locked_events),
            "choiceLog": [r.to_dict() for r in self.choice_log],
        }

    @classmethod
    def from_snapshot(cls, d: Mapping[str, Any]) -> SessionState:
        """Rebuild a state from a snapshot.  Raises on malformed input."""
        if not isinstance(d, Mapping):
            raise DataContractViolation("Snapshot must be an object")
        raw_character = d.get("character")
        character = Character.from_dict(raw_character) if raw_character else None

        completed = _id_list(d, "completedEvents")
        unlocked = _id_list(d, "unlockedEvents")
        locked = _id_list(d, "lockedEvents")
        game_year = d.get("gameYear", 0)
        if isinstance(game_year, bool) or not isinstance(game_year, int) or game_year < 0:
            raise DataContractViolation(f"Invalid gameYear {game_year!r}")

        settings = GameSettings.from_dict(d.get("settings", {}))
        settings.sound_enabled = bool(d.get("soundEnabled", settings.sound_enabled))
        settings.music_enabled = bool(d.get("musicEnabled", settings.music_enabled))

        if character is not None:
            character.completed_events = list(completed)

        return cls(
            character=character,
            completed_events=list(completed),
            game_year=game_year,
            settings=settings,
            is_game_started=bool(d.get("isGameStarted", False)) and character is not None,
            unlocked_events=unlocked,
            locked_events=locked,
            choice_log=[ChoiceRecord.from_dict(r) for r in d.get("choiceLog", [])],
        )


@dataclass
class PersistenceResult:
    """Outcome of save_game / load_game."""
    ok: bool
    state: SessionState
    found: bool = False
    error: str | None = None


@dataclass
class ChoiceOutcome:
    """Outcome of make_choice.  ``result`` is None when the choice was rejected."""
    accepted: bool
    state: SessionState
    result: EventResult | None = None


def _merge_ids(existing: list[str], new: list[str] | None) -> list[str]:
    merged = list(existing)
    for item in new or []:
        if item not in merged:
            merged.append(item)
    return merged


class GameSession:
    """
    One player's game.

    Parameters
    ----------
    config : GameConfig | None
        Rule configuration (defaults to ``GameConfig()``).
    catalog : EventCatalog | None
        Event definitions; the bundled catalog is loaded when omitted.
    storage : SnapshotStorage | None
        Persistence capability.  ``None`` keeps the session in memory only.
    storage_key : str
        Key this session saves under.
    rng : np.random.Generator | None
        Source for event draws and the death roll.  Seeded from
        ``config.random_seed`` when omitted.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        catalog: EventCatalog | None = None,
        storage: SnapshotStorage | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        rng: np.random.Generator | None = None,
    ):
        self.config = config or GameConfig()
        self.catalog = catalog if catalog is not None else EventCatalog.load()
        self.storage = storage
        self.storage_key = storage_key
        self.rng = rng or np.random.default_rng(self.config.random_seed)

        self.decay = DecayEngine(self.config)
        self.resolver = EligibilityResolver(self.config)
        self.processor = ChoiceProcessor()

        self._state = SessionState()

    def _use_config(self, config: GameConfig) -> None:
        """Swap in a stored config; the RNG is reseeded only if it changed."""
        if not self.config.diff(config):
            return
        self.config = config
        self.decay = DecayEngine(config)
        self.resolver = EligibilityResolver(config)
        self.rng = np.random.default_rng(config.random_seed)

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self.snapshot()

    def snapshot(self) -> SessionState:
        """Detached copy of the current state."""
        return copy.deepcopy(self._state)

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    def _commit(self, new_state: SessionState, autosave: bool = True) -> SessionState:
        self._state = new_state
        if autosave and new_state.settings.auto_save and self.storage is not None:
            self.save_game()
        return self.snapshot()

    def _active_character(self, operation: str) -> Character | None:
        """The character if gameplay may proceed, else None (logged)."""
        if self._state.status is not SessionStatus.ACTIVE:
            logger.debug(
                "%s ignored: session is %s", operation, self._state.status.value,
            )
            return None
        return self._state.character

    def _touch(self, character: Character, **changes: Any) -> Character:
        return replace(
            character, last_played_at=datetime.now(timezone.utc), **changes,
        )

    def _tick(
        self, character: Character, extra_deltas: Mapping[str, int] | None = None,
    ) -> tuple[int, DecayTick]:
        """One year tick: summed deltas and decay for the resulting phase."""
        new_age = character.age + 1
        deltas = dict(extra_deltas or {})
        if self.config.synergy_on_tick:
            for stat, bonus in synergy_bonus(character.stats).items():
                deltas[stat] = deltas.get(stat, 0) + bonus
        tick = self.decay.year_tick(
            character.stats,
            classify_life_phase(new_age),
            carry=character.decay_carry,
            extra_deltas=deltas,
            difficulty=self._state.settings.difficulty,
        )
        return new_age, tick

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start_new_game(self, character: Character) -> SessionState:
        """Begin a new life; history, year and current event are reset."""
        character = replace(
            copy.deepcopy(character), completed_events=[], decay_carry={},
        )
        logger.info("Starting new game for %s (age %d)", character.name, character.age)
        return self._commit(SessionState(
            character=character,
            settings=copy.deepcopy(self._state.settings),
            is_game_started=True,
        ))

    def pause_game(self) -> SessionState:
        if self._state.status is not SessionStatus.ACTIVE:
            return self.snapshot()
        return self._commit(replace(self._state, is_paused=True), autosave=False)

    def resume_game(self) -> SessionState:
        if self._state.status is not SessionStatus.PAUSED:
            return self.snapshot()
        return self._commit(replace(self._state, is_paused=False), autosave=False)

    def reset_game(self) -> SessionState:
        """Clear in-memory state.  Stored snapshots are left alone."""
        logger.info("Resetting game session")
        return self._commit(
            SessionState(settings=copy.deepcopy(self._state.settings)),
            autosave=False,
        )

    # ------------------------------------------------------------------
    # Character mutation
    # ------------------------------------------------------------------
    def update_character_stats(self, changes: Mapping[str, int]) -> SessionState:
        """Apply a delta map all-or-nothing; unknown stat keys are ignored."""
        character = self._active_character("update_character_stats")
        if character is None:
            return self.snapshot()
        deltas: dict[str, int] = {}
        for stat, delta in changes.items():
            if not is_stat(stat):
                continue
            if isinstance(delta, bool) or not isinstance(delta, (int, np.integer)):
                raise DataContractViolation(f"Delta for '{stat}' must be an integer, got {delta!r}")
            deltas[stat] = deltas.get(stat, 0) + int(delta)
        new_character = self._touch(character, stats=character.stats.apply(deltas))
        return self._commit(replace(self._state, character=new_character))

    def age_character(self) -> SessionState:
        """Advance one year: age and game year +1, decay for the new phase."""
        character = self._active_character("age_character")
        if character is None:
            return self.snapshot()
        new_age, tick = self._tick(character)
        new_character = self._touch(
            character, age=new_age, stats=tick.stats, decay_carry=tick.carry,
        )
        return self._commit(replace(
            self._state,
            character=new_character,
            game_year=self._state.game_year + 1,
        ))

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def set_current_event(self, event_id: str) -> SessionState:
        if self._active_character("set_current_event") is None:
            return self.snapshot()
        if event_id not in self.catalog:
            logger.debug("set_current_event ignored: unknown event %s", event_id)
            return self.snapshot()
        return self._commit(replace(self._state, current_event_id=event_id))

    def _is_repeatable(self, event_id: str) -> bool:
        return event_id in self.catalog and self.catalog.get(event_id).is_repeatable

    def complete_event(self, event_id: str) -> SessionState:
        """Append to history and clear the current event.

        A non-repeatable event already in history is not appended twice.
        """
        character = self._active_character("complete_event")
        if character is None:
            return self.snapshot()
        if event_id in self._state.completed_events and not self._is_repeatable(event_id):
            logger.debug("complete_event ignored: %s already completed", event_id)
            return self.snapshot()
        completed = self._state.completed_events + [event_id]
        return self._commit(replace(
            self._state,
            completed_events=completed,
            current_event_id=None,
            character=self._touch(character, completed_events=list(completed)),
        ))

    def available_events(self) -> list[GameEvent]:
        state = self._state
        if state.character is None:
            return []
        return self.resolver.get_available_events(
            state.character,
            self.catalog,
            state.completed_events,
            unlocked=state.unlocked_events,
            locked=state.locked_events,
        )

    def available_choices(self, event_id: str) -> list[GameChoice]:
        state = self._state
        if state.character is None:
            return []
        return self.resolver.get_available_choices(
            state.character,
            self.catalog.get(event_id),
            state.completed_events,
            unlocked=state.unlocked_events,
        )

    def draw_event(self, base_chance: float | None = None) -> GameEvent | None:
        """Draw a rarity-weighted event for this year.

        With ``base_chance``, an event only fires when a roll succeeds
        against ``event_probability`` for the character's phase and stats.
        """
        character = self._state.character
        if character is None:
            return None
        if base_chance is not None:
            chance = event_probability(base_chance, character.stats, character.life_phase)
            if self.rng.random() >= chance:
                return None
        return self.resolver.select_random_event(self.available_events(), self.rng)

    def make_choice(
        self, event_id: str, choice_id: str, advance_year: bool = True,
    ) -> ChoiceOutcome:
        """
        Resolve a choice within an event.

        The event and the choice must both be eligible.  The event joins
        the history, unlock/lock consequences update future eligibility,
        and the choice is recorded in the life log.  With ``advance_year``
        the choice effect and that year's decay are summed and clamped once.
        """
        character = self._active_character("make_choice")
        if character is None:
            return ChoiceOutcome(accepted=False, state=self.snapshot())

        event = self.catalog.get(event_id)
        choice = event.get_choice(choice_id)
        state = self._state
        if event_id not in {e.id for e in self.available_events()}:
            logger.debug("make_choice rejected: event %s not available", event_id)
            return ChoiceOutcome(accepted=False, state=self.snapshot())
        if not self.resolver.can_make_choice(
            character, choice, state.completed_events, unlocked=state.unlocked_events,
        ):
            logger.debug("make_choice rejected: choice %s/%s not allowed", event_id, choice_id)
            return ChoiceOutcome(accepted=False, state=self.snapshot())

        result = self.processor.process_choice(character, choice, state.completed_events)

        if advance_year:
            new_age, tick = self._tick(character, result.deltas())
            stats, carry, game_year = tick.stats, tick.carry, state.game_year + 1
        else:
            new_age, stats = character.age, character.stats.apply(result.deltas())
            carry, game_year = character.decay_carry, state.game_year

        unlocked = _merge_ids(state.unlocked_events, result.unlocked_events)
        locked = [e for e in state.locked_events if e not in (result.unlocked_events or [])]
        locked = _merge_ids(locked, result.locked_events)
        unlocked = [e for e in unlocked if e not in (result.locked_events or [])]

        completed = state.completed_events + [event_id]
        record = ChoiceRecord(
            event_id=event_id,
            choice_id=choice_id,
            age=character.age,
            stat_changes=list(result.stat_changes),
        )
        new_character = self._touch(
            character,
            age=new_age,
            stats=stats,
            decay_carry=carry,
            completed_events=list(completed),
        )
        new_state = self._commit(replace(
            state,
            character=new_character,
            completed_events=completed,
            current_event_id=None,
            game_year=game_year,
            unlocked_events=unlocked,
            locked_events=locked,
            choice_log=state.choice_log + [record],
        ))
        return ChoiceOutcome(accepted=True, state=new_state, result=result)

    def check_game_end(self) -> EndCheck:
        character = self._state.character
        if character is None:
            return EndCheck(ended=False)
        return should_game_end(character, self.rng)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def toggle_sound(self) -> SessionState:
        settings = replace(self._state.settings, sound_enabled=not self._state.settings.sound_enabled)
        return self._commit(replace(self._state, settings=settings), autosave=False)

    def toggle_music(self) -> SessionState:
        settings = replace(self._state.settings, music_enabled=not self._state.settings.music_enabled)
        return self._commit(replace(self._state, settings=settings), autosave=False)

    def update_settings(self, **changes: Any) -> SessionState:
        """Replace individual settings; unknown names raise."""
        known = {f.name for f in fields(GameSettings)}
        unknown = set(changes) - known
        if unknown:
            raise DataContractViolation(f"Unknown settings: {sorted(unknown)}")
        settings = replace(self._state.settings, **changes)
        return self._commit(replace(self._state, settings=settings), autosave=False)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def save_game(self) -> PersistenceResult:
        """Write the current snapshot through the storage capability."""
        if self.storage is None:
            return PersistenceResult(ok=False, state=self.snapshot(), error="no storage attached")
        snapshot = self._state.to_snapshot()
        snapshot["config"] = self.config.to_dict()
        try:
            ok = bool(self.storage.save(self.storage_key, snapshot))
        except Exception as exc:
            logger.warning("Failed to save game %s", self.storage_key, exc_info=True)
            return PersistenceResult(ok=False, state=self.snapshot(), error=str(exc))
        if not ok:
            return PersistenceResult(ok=False, state=self.snapshot(), error="storage rejected save")
        return PersistenceResult(ok=True, state=self.snapshot(), found=True)

    def load_game(self) -> PersistenceResult:
        """
        Restore the stored snapshot.

        A missing snapshot gives a fresh not-started session (``found`` is
        False).  A storage error or corrupt snapshot also falls back to a
        fresh session and reports ``ok=False``.  A config stored with the
        snapshot replaces the session's own.
        """
        fresh = SessionState(settings=copy.deepcopy(self._state.settings))
        if self.storage is None:
            self._state = fresh
            return PersistenceResult(ok=False, state=self.snapshot(), error="no storage attached")
        try:
            raw = self.storage.load(self.storage_key)
        except Exception as exc:
            logger.warning("Failed to load game %s", self.storage_key, exc_info=True)
            self._state = fresh
            return PersistenceResult(ok=False, state=self.snapshot(), error=str(exc))

        if raw is None:
            self._state = fresh
            return PersistenceResult(ok=True, state=self.snapshot(), found=False)

        try:
            restored = SessionState.from_snapshot(raw)
            raw_config = raw.get("config")
            config = GameConfig.from_dict(raw_config) if raw_config is not None else None
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning(
                "Corrupt snapshot for %s; starting fresh", self.storage_key, exc_info=True,
            )
            self._state = fresh
            return PersistenceResult(ok=False, state=self.snapshot(), error=str(exc))

        logger.info("Loaded game %s (year %d)", self.storage_key, restored.game_year)
        if config is not None:
            self._use_config(config)
        self._state = restored
        return PersistenceResult(ok=True, state=self.snapshot(), found=True)
