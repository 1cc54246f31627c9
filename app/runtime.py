"""Runtime wiring for the assistant: settings in, ready-to-run components out."""
from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console

from research_assistant.conversation import ConversationHistory

from app.agents.chat_model import OpenAIChatModel
from app.config import AppSettings, load_settings
from app.observability import MetricsEmitter
from app.orchestrator import TurnOrchestrator
from app.renderer import StreamRenderer
from app.session import SessionLoop
from app.tools.corpus_search import CorpusSearchTool
from app.tools.valyu_search import ValyuSearchTransport
from app.utils.cache import SearchCache

logger = logging.getLogger(__name__)


def build_metrics(settings: AppSettings) -> MetricsEmitter:
    return MetricsEmitter(enabled=settings.observability.metrics_enabled)


def build_search_tool(settings: AppSettings, metrics: Optional[MetricsEmitter] = None) -> CorpusSearchTool:
    """Construct the corpus search tool backed by the Valyu API."""

    if not settings.search_api_key:
        logger.warning("VALYU_API_KEY not configured; searches will report a failure to the model")
    return CorpusSearchTool(
        transport=ValyuSearchTransport(api_key=settings.search_api_key),
        included_sources=settings.search.included_sources,
        search_type=settings.search.search_type,
        cache=SearchCache(ttl_seconds=settings.cache.ttl_seconds),
        metrics=metrics or build_metrics(settings),
    )


def build_orchestrator(settings: Optional[AppSettings] = None) -> TurnOrchestrator:
    settings = settings or load_settings()
    metrics = build_metrics(settings)
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not configured; model requests will fail")
    model = OpenAIChatModel(
        model=settings.chat.model,
        api_key=settings.openai_api_key,
        metrics_emitter=metrics,
    )
    return TurnOrchestrator(
        model,
        build_search_tool(settings, metrics),
        max_steps=settings.chat.max_steps,
        metrics=metrics,
    )


def build_session(
    settings: Optional[AppSettings] = None,
    console: Optional[Console] = None,
    history: Optional[ConversationHistory] = None,
) -> SessionLoop:
    settings = settings or load_settings()
    renderer = StreamRenderer(console=console, corpus_label=settings.search.corpus_label)
    return SessionLoop(build_orchestrator(settings), renderer, history=history)
