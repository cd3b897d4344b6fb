"""Tests for GameSession lifecycle, gameplay mutations and persistence."""

from __future__ import annotations

import copy

import pytest

from lifeline.core.character import Character
from lifeline.core.config import GameConfig
from lifeline.core.errors import DataContractViolation
from lifeline.core.events import EventCatalog
from lifeline.core.session import (
    DEFAULT_STORAGE_KEY,
    GameSession,
    SessionState,
    SessionStatus,
    SnapshotStorage,
)
from lifeline.core.stats import CharacterStats

CATALOG = EventCatalog.load()


class MemoryStorage(SnapshotStorage):
    def __init__(self):
        self.data: dict[str, dict] = {}
        self.saves = 0

    def load(self, key):
        snap = self.data.get(key)
        return copy.deepcopy(snap) if snap is not None else None

    def save(self, key, snapshot):
        self.saves += 1
        self.data[key] = copy.deepcopy(snapshot)
        return True


class BrokenStorage(SnapshotStorage):
    def load(self, key):
        raise RuntimeError("disk on fire")

    def save(self, key, snapshot):
        raise RuntimeError("disk on fire")


def _make_session(storage=None, **config_overrides) -> GameSession:
    config = GameConfig(random_seed=42, **config_overrides)
    return GameSession(config=config, catalog=CATALOG, storage=storage)


def _make_character(age=18, **stats) -> Character:
    return Character(name="Ayla", age=age, stats=CharacterStats(**stats))


def _started(storage=None, age=18, **stats) -> GameSession:
    session = _make_session(storage)
    session.start_new_game(_make_character(age=age, **stats))
    return session


# =====================================================================
# Lifecycle
# =====================================================================

class TestLifecycle:
    def test_new_session_not_started(self):
        session = _make_session()
        state = session.state
        assert session.status is SessionStatus.NOT_STARTED
        assert state.character is None
        assert state.game_year == 0
        assert state.completed_events == []

    def test_start_new_game(self):
        session = _started()
        state = session.state
        assert session.status is SessionStatus.ACTIVE
        assert state.is_game_started
        assert state.character.name == "Ayla"
        assert state.character.age == 18

    def test_start_resets_history(self):
        session = _started()
        session.make_choice("university_choice", "gap_year")
        state = session.start_new_game(_make_character())
        assert state.completed_events == []
        assert state.unlocked_events == []
        assert state.choice_log == []
        assert state.game_year == 0

    def test_pause_and_resume(self):
        session = _started()
        assert session.pause_game().is_paused
        assert session.status is SessionStatus.PAUSED
        assert not session.resume_game().is_paused
        assert session.status is SessionStatus.ACTIVE

    def test_pause_without_game_is_noop(self):
        session = _make_session()
        assert not session.pause_game().is_paused

    def test_paused_blocks_gameplay(self):
        session = _started()
        session.pause_game()
        assert session.age_character().character.age == 18
        assert session.update_character_stats({"health": 5}).character.stats.health == 50
        assert session.complete_event("first_love").completed_events == []
        assert not session.make_choice("university_choice", "gap_year").accepted

    def test_reset(self):
        session = _started()
        session.age_character()
        state = session.reset_game()
        assert state.character is None
        assert state.game_year == 0
        assert session.status is SessionStatus.NOT_STARTED

    def test_reset_keeps_settings(self):
        session = _started()
        session.update_settings(language="en")
        assert session.reset_game().settings.language == "en"

    def test_state_is_detached(self):
        session = _started()
        state = session.state
        state.completed_events.append("hacked")
        state.character.age = 99
        assert session.state.completed_events == []
        assert session.state.character.age == 18


# =====================================================================
# Character mutation
# =====================================================================

class TestCharacterMutation:
    def test_no_character_is_noop(self):
        session = _make_session()
        assert session.age_character().character is None
        assert session.update_character_stats({"health": 5}).character is None

    def test_update_stats_clamped(self):
        session = _started()
        stats = session.update_character_stats({"health": 60, "wealth": -70}).character.stats
        assert stats.health == 100
        assert stats.wealth == 0

    def test_update_stats_ignores_unknown(self):
        session = _started()
        stats = session.update_character_stats({"luck": 10, "social": 3}).character.stats
        assert stats.social == 53

    def test_update_stats_all_or_nothing(self):
        session = _started()
        with pytest.raises(DataContractViolation):
            session.update_character_stats({"health": 5, "wealth": "lots"})
        assert session.state.character.stats == CharacterStats()

    def test_age_character(self):
        session = _started()
        state = session.age_character()
        assert state.character.age == 19
        assert state.game_year == 1
        # young adult: half a point of health carried
        assert state.character.stats.health == 50
        state = session.age_character()
        assert state.character.stats.health == 49

    def test_age_updates_last_played(self):
        session = _started()
        before = session.state.character.last_played_at
        after = session.age_character().character.last_played_at
        assert after >= before

    def test_decay_uses_resulting_phase(self):
        session = _started(age=29)
        # 29 -> 30 enters adult: full point of health
        assert session.age_character().character.stats.health == 49

    def test_hard_difficulty(self):
        session = _started(age=30)
        session.update_settings(difficulty="hard")
        assert session.age_character().character.stats.health == 49
        assert session.age_character().character.stats.health == 47

    def test_wealth_never_decays_over_a_life(self):
        session = _started(age=18, wealth=40)
        for _ in range(70):
            session.age_character()
        assert session.state.character.stats.wealth == 40

    def test_synergy_on_tick(self):
        session = GameSession(
            config=GameConfig(synergy_on_tick=True), catalog=CATALOG,
        )
        session.start_new_game(_make_character(social=75, happiness=65))
        stats = session.age_character().character.stats
        assert stats.social == 76
        assert stats.happiness == 66


# =====================================================================
# Events
# =====================================================================

class TestEvents:
    def test_set_current_event(self):
        session = _started()
        assert session.set_current_event("university_choice").current_event_id == "university_choice"

    def test_set_unknown_current_event_is_noop(self):
        session = _started()
        assert session.set_current_event("nope").current_event_id is None

    def test_complete_clears_current(self):
        session = _started()
        session.set_current_event("university_choice")
        state = session.complete_event("university_choice")
        assert state.current_event_id is None
        assert state.completed_events == ["university_choice"]
        assert state.character.completed_events == ["university_choice"]

    def test_non_repeatable_completed_once(self):
        session = _started()
        session.complete_event("first_love")
        assert session.complete_event("first_love").completed_events == ["first_love"]

    def test_repeatable_completed_many(self):
        session = _started()
        session.complete_event("job_interview")
        assert session.complete_event("job_interview").completed_events == [
            "job_interview", "job_interview",
        ]

    def test_available_events_exclude_completed(self):
        session = _started()
        assert "university_choice" in {e.id for e in session.available_events()}
        session.complete_event("university_choice")
        assert "university_choice" not in {e.id for e in session.available_events()}

    def test_available_events_without_character(self):
        assert _make_session().available_events() == []

    def test_available_choices_respect_requirements(self):
        session = _started(intelligence=50, social=50)
        ids = [c.id for c in session.available_choices("job_interview")]
        assert "negotiate" not in ids
        session.update_character_stats({"intelligence": 20, "social": 10})
        ids = [c.id for c in session.available_choices("job_interview")]
        assert "negotiate" in ids

    def test_draw_event_seeded(self):
        session = _started()
        available = {e.id for e in session.available_events()}
        for _ in range(20):
            event = session.draw_event()
            assert event.id in available

    def test_draw_event_without_character(self):
        assert _make_session().draw_event() is None

    def test_draw_event_zero_chance(self):
        session = _started()
        assert session.draw_event(base_chance=0.0) is None


# =====================================================================
# Choices
# =====================================================================

class TestMakeChoice:
    def test_prestigious_university(self):
        session = _started()
        outcome = session.make_choice("university_choice", "prestigious_university")
        assert outcome.accepted
        state = outcome.state
        stats = state.character.stats
        assert stats.intelligence == 60
        assert stats.wealth == 45
        assert stats.health == 50
        assert state.character.age == 19
        assert state.game_year == 1
        assert "university_choice" in state.completed_events
        assert state.current_event_id is None

    def test_result_records_changes(self):
        session = _started()
        result = session.make_choice("university_choice", "prestigious_university").result
        assert result.success
        assert {sc.stat: sc.delta for sc in result.stat_changes} == {
            "intelligence": 10, "wealth": -5,
        }
        assert all(sc.age == 18 for sc in result.stat_changes)

    def test_choice_log(self):
        session = _started()
        state = session.make_choice("university_choice", "gap_year").state
        assert len(state.choice_log) == 1
        record = state.choice_log[0]
        assert (record.event_id, record.choice_id, record.age) == ("university_choice", "gap_year", 18)

    def test_without_advancing_year(self):
        session = _started()
        state = session.make_choice(
            "university_choice", "prestigious_university", advance_year=False,
        ).state
        assert state.character.age == 18
        assert state.game_year == 0
        assert state.character.stats.intelligence == 60

    def test_ineligible_event_rejected(self):
        session = _started()
        outcome = session.make_choice("graduation", "first_job")
        assert not outcome.accepted
        assert outcome.result is None
        assert outcome.state.game_year == 0

    def test_ineligible_choice_rejected(self):
        session = _started(intelligence=50)
        outcome = session.make_choice("job_interview", "negotiate")
        assert not outcome.accepted
        assert session.state.character.stats.wealth == 50

    def test_completed_event_cannot_be_chosen_again(self):
        session = _started()
        session.make_choice("university_choice", "gap_year", advance_year=False)
        assert not session.make_choice("university_choice", "gap_year").accepted

    def test_unknown_event_raises(self):
        session = _started()
        with pytest.raises(KeyError):
            session.make_choice("nope", "a")

    def test_unknown_choice_raises(self):
        session = _started()
        with pytest.raises(KeyError):
            session.make_choice("university_choice", "nope")

    def test_without_character(self):
        outcome = _make_session().make_choice("university_choice", "gap_year")
        assert not outcome.accepted


class TestUnlockLock:
    def test_unlock_opens_gated_event(self):
        session = _started()
        state = session.make_choice("university_choice", "prestigious_university").state
        assert "graduation" in state.unlocked_events
        assert "early_promotion" in state.locked_events
        session.age_character()
        session.age_character()
        ids = {e.id for e in session.available_events()}
        assert "graduation" in ids
        assert "early_promotion" not in ids

    def test_gated_event_hidden_without_unlock(self):
        session = _started()
        session.make_choice("university_choice", "gap_year")
        session.age_character()
        session.age_character()
        assert "graduation" not in {e.id for e in session.available_events()}

    def test_unlocked_event_playable_once(self):
        session = _started()
        session.make_choice("university_choice", "start_working")
        session.age_character()
        outcome = session.make_choice("early_promotion", "stay_put")
        assert outcome.accepted
        assert "early_promotion" not in {e.id for e in session.available_events()}

    def test_locked_event_never_offered(self):
        session = _started(age=22)
        session.complete_event("first_love")
        state = session.make_choice("marriage_proposal", "say_yes").state
        assert "lonely_winter" in state.locked_events
        for _ in range(10):
            session.age_character()
        assert "lonely_winter" not in {e.id for e in session.available_events()}

    def test_unlock_keeps_forbidding_event_open(self):
        def event(event_id, **overrides):
            raw = {
                "id": event_id, "title": event_id, "category": "random",
                "age_range": {"min": 18, "max": 30},
                "choices": [{"id": "a", "text": "A"}],
            }
            raw.update(overrides)
            return raw

        catalog = EventCatalog.from_list([
            event("gate", choices=[{
                "id": "open", "text": "Open", "consequences": {"unlock_events": ["uni"]},
            }]),
            event("uni", prerequisites={"required_events": ["uni"]}),
            event("dropout_path", prerequisites={"forbidden_events": ["uni"]}),
        ])
        session = GameSession(config=GameConfig(random_seed=1), catalog=catalog)
        session.start_new_game(_make_character())
        state = session.make_choice("gate", "open", advance_year=False).state
        assert state.unlocked_events == ["uni"]
        assert [e.id for e in session.available_events()] == ["uni", "dropout_path"]

        assert session.make_choice("uni", "a", advance_year=False).accepted
        assert [e.id for e in session.available_events()] == []


# =====================================================================
# End of game
# =====================================================================

class TestCheckGameEnd:
    def test_not_started(self):
        assert not _make_session().check_game_end().ended

    def test_health_depleted(self):
        session = _started(health=0)
        check = session.check_game_end()
        assert check.ended
        assert check.reason.value == "health_depleted"

    def test_young_and_healthy(self):
        assert not _started().check_game_end().ended


# =====================================================================
# Settings
# =====================================================================

class TestSettings:
    def test_defaults(self):
        settings = _make_session().state.settings
        assert settings.sound_enabled
        assert settings.music_enabled
        assert not settings.auto_save
        assert settings.difficulty == "normal"
        assert settings.language == "tr"

    def test_toggles(self):
        session = _make_session()
        assert not session.toggle_sound().settings.sound_enabled
        assert not session.toggle_music().settings.music_enabled
        assert session.toggle_sound().settings.sound_enabled

    def test_update_settings(self):
        session = _make_session()
        settings = session.update_settings(difficulty="easy", notifications=False).settings
        assert settings.difficulty == "easy"
        assert not settings.notifications

    def test_unknown_setting_rejected(self):
        with pytest.raises(DataContractViolation):
            _make_session().update_settings(volume=11)

    def test_invalid_difficulty_rejected(self):
        session = _make_session()
        with pytest.raises(DataContractViolation):
            session.update_settings(difficulty="nightmare")
        assert session.state.settings.difficulty == "normal"


# =====================================================================
# Persistence
# =====================================================================

class TestPersistence:
    def test_save_without_storage(self):
        result = _started().save_game()
        assert not result.ok
        assert result.error == "no storage attached"

    def test_load_without_storage(self):
        result = _started().load_game()
        assert not result.ok
        assert result.state.character is None

    def test_save_and_load(self):
        storage = MemoryStorage()
        session = _started(storage)
        session.make_choice("university_choice", "prestigious_university")
        assert session.save_game().ok

        fresh = _make_session(storage)
        result = fresh.load_game()
        assert result.ok
        assert result.found
        state = result.state
        assert state.character.name == "Ayla"
        assert state.character.stats.intelligence == 60
        assert state.character.age == 19
        assert state.game_year == 1
        assert state.completed_events == ["university_choice"]
        assert state.unlocked_events == ["graduation"]
        assert state.locked_events == ["early_promotion"]
        assert len(state.choice_log) == 1
        assert fresh.status is SessionStatus.ACTIVE

    def test_saved_under_default_key(self):
        storage = MemoryStorage()
        _started(storage).save_game()
        assert DEFAULT_STORAGE_KEY in storage.data

    def test_snapshot_fields(self):
        storage = MemoryStorage()
        _started(storage).save_game()
        snap = storage.data[DEFAULT_STORAGE_KEY]
        for key in ("character", "completedEvents", "gameYear", "soundEnabled",
                    "musicEnabled", "isGameStarted"):
            assert key in snap
        assert "currentEventId" not in snap

    def test_load_missing(self):
        result = _make_session(MemoryStorage()).load_game()
        assert result.ok
        assert not result.found
        assert result.state.character is None

    def test_load_corrupt(self):
        storage = MemoryStorage()
        storage.data[DEFAULT_STORAGE_KEY] = {"character": {"name": "x"}, "gameYear": 3}
        session = _started(storage)
        result = session.load_game()
        assert not result.ok
        assert result.state.character is None
        assert session.status is SessionStatus.NOT_STARTED

    def test_load_invalid_stats(self):
        storage = MemoryStorage()
        session = _started(storage)
        session.save_game()
        storage.data[DEFAULT_STORAGE_KEY]["character"]["stats"]["health"] = 500
        assert not session.load_game().ok

    def test_config_travels_with_snapshot(self):
        storage = MemoryStorage()
        config = GameConfig(starting_age=21, random_seed=3, synergy_on_tick=True)
        session = GameSession(config=config, catalog=CATALOG, storage=storage)
        session.start_new_game(_make_character())
        session.save_game()
        assert storage.data[DEFAULT_STORAGE_KEY]["config"]["starting_age"] == 21

        restored = GameSession(catalog=CATALOG, storage=storage)
        assert restored.load_game().ok
        assert restored.config.starting_age == 21
        assert restored.config.random_seed == 3
        assert restored.config.synergy_on_tick is True

    def test_load_rejects_unknown_config(self):
        storage = MemoryStorage()
        session = _started(storage)
        session.save_game()
        storage.data[DEFAULT_STORAGE_KEY]["config"]["warp_speed"] = 9
        result = session.load_game()
        assert not result.ok
        assert result.state.character is None

    def test_broken_storage(self):
        session = _started(BrokenStorage())
        assert not session.save_game().ok
        result = session.load_game()
        assert not result.ok
        assert "disk on fire" in result.error

    def test_no_autosave_by_default(self):
        storage = MemoryStorage()
        session = _started(storage)
        session.age_character()
        assert storage.saves == 0

    def test_autosave(self):
        storage = MemoryStorage()
        session = _make_session(storage)
        session.update_settings(auto_save=True)
        session.start_new_game(_make_character())
        session.age_character()
        assert storage.data[DEFAULT_STORAGE_KEY]["gameYear"] == 1

    def test_reset_leaves_storage(self):
        storage = MemoryStorage()
        session = _started(storage)
        session.save_game()
        session.reset_game()
        assert storage.data[DEFAULT_STORAGE_KEY]["character"]["name"] == "Ayla"
        assert session.load_game().state.character.name == "Ayla"


class TestSessionState:
    def test_snapshot_roundtrip_preserves_settings(self):
        state = SessionState()
        state.settings.sound_enabled = False
        state.settings.difficulty = "hard"
        restored = SessionState.from_snapshot(state.to_snapshot())
        assert not restored.settings.sound_enabled
        assert restored.settings.difficulty == "hard"

    def test_snapshot_rejects_bad_year(self):
        with pytest.raises(DataContractViolation):
            SessionState.from_snapshot({"gameYear": -1})

    @pytest.mark.parametrize("key", ["completedEvents", "unlockedEvents", "lockedEvents"])
    def test_snapshot_rejects_non_list_ids(self, key):
        with pytest.raises(DataContractViolation):
            SessionState.from_snapshot({key: "graduation"})
        with pytest.raises(DataContractViolation):
            SessionState.from_snapshot({key: ["graduation", 7]})

    def test_snapshot_rejects_non_mapping(self):
        with pytest.raises(DataContractViolation):
            SessionState.from_snapshot(["not", "a", "snapshot"])

    def test_started_requires_character(self):
        restored = SessionState.from_snapshot({"isGameStarted": True, "character": None})
        assert not restored.is_game_started
        assert restored.status is SessionStatus.NOT_STARTED

    def test_seeded_sessions_draw_identically(self):
        a, b = _started(), _started()
        assert [a.draw_event().id for _ in range(5)] == [b.draw_event().id for _ in range(5)]
