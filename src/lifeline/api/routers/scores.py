"""Derived score endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from lifeline.api.schemas import (
    EndCheckResponse,
    ScoresResponse,
    SuccessProbabilityRequest,
    SuccessProbabilityResponse,
)
from lifeline.api.serializers import serialize_scores
from lifeline.core.scoring import success_probability
from lifeline.core.stats import CharacterStats

router = APIRouter()


@router.post("/success-probability", response_model=SuccessProbabilityResponse)
def compute_success_probability(req: SuccessProbabilityRequest):
    stats = CharacterStats.from_dict(req.stats)
    return {"probability": success_probability(req.required, stats)}


@router.get("/{session_id}", response_model=ScoresResponse)
def get_scores(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        state = mgr.get_session(session_id).state
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    if state.character is None:
        raise HTTPException(status_code=409, detail="No active character")
    return serialize_scores(state)


@router.post("/{session_id}/end-check", response_model=EndCheckResponse)
def end_check(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    check = session.check_game_end()
    return {"ended": check.ended, "reason": check.reason.value if check.reason else None}
