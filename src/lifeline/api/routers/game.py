"""Game session lifecycle endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from lifeline.api.schemas import (
    ChoiceRequest,
    ChoiceResponse,
    CreateSessionRequest,
    EventIdRequest,
    PersistenceResponse,
    SessionResponse,
    SessionSummary,
    SettingsRequest,
    StartGameRequest,
    StatChangesRequest,
)
from lifeline.api.serializers import serialize_event_result, serialize_session
from lifeline.core.character import Character
from lifeline.core.config import GameConfig
from lifeline.core.stats import CharacterStats

router = APIRouter()


def _get(request: Request, session_id: str):
    mgr = request.app.state.session_manager
    try:
        return mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.post("/sessions", response_model=SessionResponse)
def create_session(req: CreateSessionRequest, request: Request):
    mgr = request.app.state.session_manager
    config = GameConfig.from_dict(req.config) if req.config else None
    session_id, session = mgr.create_session(config=config)
    return serialize_session(session_id, session.state)


@router.get("/sessions", response_model=list[SessionSummary])
def list_sessions(request: Request):
    return request.app.state.session_manager.list_sessions()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request):
    return serialize_session(session_id, _get(request, session_id).state)


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        mgr.delete_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {"deleted": True}


@router.post("/sessions/{session_id}/start", response_model=SessionResponse)
def start_game(session_id: str, req: StartGameRequest, request: Request):
    session = _get(request, session_id)
    if not req.name.strip():
        raise HTTPException(status_code=422, detail="Character name must not be blank")
    character = Character(
        name=req.name.strip(),
        age=req.age if req.age is not None else session.config.starting_age,
        stats=CharacterStats.from_dict(req.stats),
    )
    return serialize_session(session_id, session.start_new_game(character))


@router.post("/sessions/{session_id}/pause", response_model=SessionResponse)
def pause_game(session_id: str, request: Request):
    return serialize_session(session_id, _get(request, session_id).pause_game())


@router.post("/sessions/{session_id}/resume", response_model=SessionResponse)
def resume_game(session_id: str, request: Request):
    return serialize_session(session_id, _get(request, session_id).resume_game())


@router.post("/sessions/{session_id}/age", response_model=SessionResponse)
def age_character(session_id: str, request: Request):
    return serialize_session(session_id, _get(request, session_id).age_character())


@router.post("/sessions/{session_id}/stats", response_model=SessionResponse)
def update_stats(session_id: str, req: StatChangesRequest, request: Request):
    session = _get(request, session_id)
    return serialize_session(session_id, session.update_character_stats(req.changes))


@router.post("/sessions/{session_id}/current-event", response_model=SessionResponse)
def set_current_event(session_id: str, req: EventIdRequest, request: Request):
    session = _get(request, session_id)
    return serialize_session(session_id, session.set_current_event(req.event_id))


@router.post("/sessions/{session_id}/complete", response_model=SessionResponse)
def complete_event(session_id: str, req: EventIdRequest, request: Request):
    session = _get(request, session_id)
    return serialize_session(session_id, session.complete_event(req.event_id))


@router.post("/sessions/{session_id}/choose", response_model=ChoiceResponse)
def make_choice(session_id: str, req: ChoiceRequest, request: Request):
    session = _get(request, session_id)
    try:
        outcome = session.make_choice(req.event_id, req.choice_id, advance_year=req.advance_year)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0]) if exc.args else "Not found")
    return {
        "accepted": outcome.accepted,
        "result": serialize_event_result(outcome.result),
        "session": serialize_session(session_id, outcome.state),
    }


@router.post("/sessions/{session_id}/save", response_model=PersistenceResponse)
def save_game(session_id: str, request: Request):
    result = _get(request, session_id).save_game()
    return {
        "ok": result.ok,
        "found": result.found,
        "error": result.error,
        "session": serialize_session(session_id, result.state),
    }


@router.post("/sessions/{session_id}/load", response_model=PersistenceResponse)
def load_game(session_id: str, request: Request):
    result = _get(request, session_id).load_game()
    return {
        "ok": result.ok,
        "found": result.found,
        "error": result.error,
        "session": serialize_session(session_id, result.state),
    }


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
def reset_game(session_id: str, request: Request):
    return serialize_session(session_id, _get(request, session_id).reset_game())


@router.post("/sessions/{session_id}/settings", response_model=SessionResponse)
def update_settings(session_id: str, req: SettingsRequest, request: Request):
    session = _get(request, session_id)
    changes = req.model_dump(exclude_none=True)
    return serialize_session(session_id, session.update_settings(**changes))


@router.post("/sessions/{session_id}/settings/toggle-sound", response_model=SessionResponse)
def toggle_sound(session_id: str, request: Request):
    return serialize_session(session_id, _get(request, session_id).toggle_sound())


@router.post("/sessions/{session_id}/settings/toggle-music", response_model=SessionResponse)
def toggle_music(session_id: str, request: Request):
    return serialize_session(session_id, _get(request, session_id).toggle_music())
