"""Event eligibility and catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from lifeline.api.schemas import ChoiceInfo, EventInfo
from lifeline.api.serializers import serialize_event

router = APIRouter()


def _get(request: Request, session_id: str):
    mgr = request.app.state.session_manager
    try:
        return mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.get("/catalog", response_model=list[EventInfo])
def list_catalog(request: Request):
    return [serialize_event(e) for e in request.app.state.session_manager.catalog]


@router.get("/{session_id}/available", response_model=list[EventInfo])
def available_events(session_id: str, request: Request):
    session = _get(request, session_id)
    return [serialize_event(e) for e in session.available_events()]


@router.get("/{session_id}/random", response_model=EventInfo | None)
def random_event(
    session_id: str,
    request: Request,
    base_chance: float | None = Query(None, ge=0.0),
):
    session = _get(request, session_id)
    event = session.draw_event(base_chance=base_chance)
    return serialize_event(event) if event is not None else None


@router.get("/{session_id}/{event_id}/choices", response_model=list[ChoiceInfo])
def available_choices(session_id: str, event_id: str, request: Request):
    session = _get(request, session_id)
    try:
        choices = session.available_choices(event_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Event '{event_id}' not found")
    return [{"id": c.id, "text": c.text, "effect": dict(c.effect)} for c in choices]
