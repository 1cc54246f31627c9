from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.middleware.base import BaseHTTPMiddleware

from research_assistant.conversation import ConversationHistory
from research_assistant.events import StreamEvent, ToolResult

from app.config import AppSettings, load_settings
from app.observability import configure_logging
from app.orchestrator import TurnOrchestrator
from app.renderer import StreamRenderer
from app.runtime import build_orchestrator
from app.schemas import ChatRequest, CitationSchema, HistoryResponse, ReadinessResponse, TurnSchema

# Ensure .env is loaded even if uvicorn is started from a different CWD.
_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(_DOTENV_PATH, override=False)

logger = logging.getLogger("app")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response


def _sse(event_type: str, payload: Dict[str, Any]) -> str:
    return f"event: {event_type}\ndata: {json.dumps(payload)}\n\n"


def _event_payload(event: StreamEvent) -> Dict[str, Any]:
    payload = event.to_dict()
    if isinstance(event, ToolResult):
        payload["citations"] = [
            CitationSchema(title=citation.title, url=citation.url or None).model_dump()
            for citation in StreamRenderer.citations_for(event)
        ]
    return payload


def create_app(
    settings: Optional[AppSettings] = None,
    orchestrator: Optional[TurnOrchestrator] = None,
    history: Optional[ConversationHistory] = None,
) -> FastAPI:
    """Build the API around a single in-memory conversation."""

    settings = settings or load_settings()
    app = FastAPI(title="Corpus Research Assistant API", version="0.1.0")
    app.add_middleware(LoggingMiddleware)
    app.state.settings = settings
    app.state.orchestrator = orchestrator or build_orchestrator(settings)
    app.state.history = history if history is not None else ConversationHistory()
    app.state.turn_lock = asyncio.Lock()

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/health/ready", response_model=ReadinessResponse)
    async def readiness_check() -> ReadinessResponse:
        """Readiness check - reports whether both provider credentials are configured."""
        ready = bool(settings.openai_api_key and settings.search_api_key)
        return ReadinessResponse(
            status="ready" if ready else "degraded",
            openai_api_key_configured=bool(settings.openai_api_key),
            search_api_key_configured=bool(settings.search_api_key),
            model=settings.chat.model,
            max_steps=settings.chat.max_steps,
            included_sources=list(settings.search.included_sources),
        )

    @app.get("/v1/history", response_model=HistoryResponse)
    async def get_history() -> HistoryResponse:
        return HistoryResponse(
            turns=[TurnSchema(role=turn.role.value, content=turn.content) for turn in app.state.history]
        )

    @app.delete("/v1/history", response_model=HistoryResponse)
    async def reset_history() -> HistoryResponse:
        async with app.state.turn_lock:
            app.state.history.clear()
        return HistoryResponse()

    @app.post("/v1/chat")
    async def chat(payload: ChatRequest):
        """Run one turn and stream its events as server-sent events."""

        async def event_stream() -> AsyncIterator[str]:
            async with app.state.turn_lock:
                events = app.state.orchestrator.run_turn(app.state.history, payload.message)
                try:
                    async for event in events:
                        yield _sse(event.type, _event_payload(event))
                except Exception as exc:  # noqa: BLE001 - reported in-band, the session stays usable
                    logger.exception("Turn failed: %s", exc)
                    yield _sse("error", {"error": str(exc)})

        return StreamingResponse(event_stream(), media_type="text/event-stream")

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.error("HTTP error %s: %s", exc.status_code, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return app


_settings = load_settings()
configure_logging(_settings.observability)
app = create_app(_settings)
