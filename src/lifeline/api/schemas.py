"""
Pydantic models for API request/response validation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any


# === Sessions ===

class CreateSessionRequest(BaseModel):
    config: dict[str, Any] | None = None


class StartGameRequest(BaseModel):
    name: str = Field(min_length=1)
    age: int | None = Field(default=None, ge=0)
    stats: dict[str, int]


class StatChangesRequest(BaseModel):
    changes: dict[str, int]


class EventIdRequest(BaseModel):
    event_id: str


class ChoiceRequest(BaseModel):
    event_id: str
    choice_id: str
    advance_year: bool = True


class SettingsRequest(BaseModel):
    sound_enabled: bool | None = None
    music_enabled: bool | None = None
    notifications: bool | None = None
    auto_save: bool | None = None
    difficulty: str | None = None
    language: str | None = None


class CharacterResponse(BaseModel):
    id: str
    name: str
    age: int
    life_phase: str
    stats: dict[str, int]
    created_at: str
    last_played_at: str


class SessionSummary(BaseModel):
    id: str
    character_name: str | None
    age: int | None
    game_year: int
    status: str


class SessionResponse(BaseModel):
    id: str
    status: str
    game_year: int
    is_game_started: bool
    is_paused: bool
    current_event_id: str | None
    completed_events: list[str]
    unlocked_events: list[str]
    locked_events: list[str]
    settings: dict[str, Any]
    character: CharacterResponse | None


class PersistenceResponse(BaseModel):
    ok: bool
    found: bool
    error: str | None
    session: SessionResponse


# === Events ===

class ChoiceInfo(BaseModel):
    id: str
    text: str
    effect: dict[str, int]


class EventInfo(BaseModel):
    id: str
    title: str
    description: str
    category: str
    rarity: str
    is_repeatable: bool
    age_range: dict[str, int]
    choices: list[ChoiceInfo]


class StatChangeInfo(BaseModel):
    stat: str
    delta: int
    reason: str
    age: int


class EventResultInfo(BaseModel):
    success: bool
    stat_changes: list[StatChangeInfo]
    unlocked_events: list[str] | None
    locked_events: list[str] | None


class ChoiceResponse(BaseModel):
    accepted: bool
    result: EventResultInfo | None
    session: SessionResponse


# === Scores ===

class ScoresResponse(BaseModel):
    life_phase: str
    well_being: int
    life_expectancy: int
    character_score: int
    synergy_bonus: dict[str, int]


class EndCheckResponse(BaseModel):
    ended: bool
    reason: str | None


class SuccessProbabilityRequest(BaseModel):
    required: dict[str, int]
    stats: dict[str, int]


class SuccessProbabilityResponse(BaseModel):
    probability: float
