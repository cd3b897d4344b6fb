"""
FastAPI application factory for the Lifeline API.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lifeline.api.sessions import SessionManager
from lifeline.api.routers import events, game, scores
from lifeline.core.errors import DataContractViolation

# Load .env from the project root first, then CWD
_project_root = Path(__file__).resolve().parents[3]
load_dotenv(_project_root / ".env")
load_dotenv(Path.cwd() / ".env")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Lifeline API",
        description="REST API for the Lifeline life-simulation engine",
        version="0.3.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    db_path = os.environ.get("LIFELINE_DB_PATH", "data/lifeline.db")
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    application.state.session_manager = SessionManager(db_path=db_path)

    @application.exception_handler(DataContractViolation)
    def data_contract_violation(request: Request, exc: DataContractViolation):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    application.include_router(game.router, prefix="/api/game", tags=["game"])
    application.include_router(events.router, prefix="/api/events", tags=["events"])
    application.include_router(scores.router, prefix="/api/scores", tags=["scores"])

    @application.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return application


app = create_app()
