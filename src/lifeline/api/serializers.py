"""
Serializers for converting session objects to JSON-safe dicts.
"""

from __future__ import annotations

from typing import Any

from lifeline.core.character import Character
from lifeline.core.choices import EventResult
from lifeline.core.events import GameEvent
from lifeline.core.scoring import character_score, life_expectancy, synergy_bonus, well_being_score
from lifeline.core.session import SessionState


def serialize_character(character: Character) -> dict[str, Any]:
    return {
        "id": character.id,
        "name": character.name,
        "age": character.age,
        "life_phase": character.life_phase.value,
        "stats": character.stats.to_dict(),
        "created_at": character.created_at.isoformat(),
        "last_played_at": character.last_played_at.isoformat(),
    }


def serialize_session(session_id: str, state: SessionState) -> dict[str, Any]:
    return {
        "id": session_id,
        "status": state.status.value,
        "game_year": state.game_year,
        "is_game_started": state.is_game_started,
        "is_paused": state.is_paused,
        "current_event_id": state.current_event_id,
        "completed_events": list(state.completed_events),
        "unlocked_events": list(state.unlocked_events),
        "locked_events": list(state.locked_events),
        "settings": state.settings.to_dict(),
        "character": serialize_character(state.character) if state.character else None,
    }


def serialize_event(event: GameEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "category": event.category.value,
        "rarity": event.rarity.value,
        "is_repeatable": event.is_repeatable,
        "age_range": {"min": event.age_range.min, "max": event.age_range.max},
        "choices": [
            {"id": c.id, "text": c.text, "effect": dict(c.effect)}
            for c in event.choices
        ],
    }


def serialize_event_result(result: EventResult | None) -> dict[str, Any] | None:
    return result.to_dict() if result is not None else None


def serialize_scores(state: SessionState) -> dict[str, Any]:
    """Derived scores for the session's character (achievements = completed events)."""
    character = state.character
    return {
        "life_phase": character.life_phase.value,
        "well_being": well_being_score(character.stats),
        "life_expectancy": life_expectancy(character.stats, character.age),
        "character_score": character_score(
            character.stats, character.age, state.completed_events,
        ),
        "synergy_bonus": synergy_bonus(character.stats),
    }
