"""Terminal entry point for the corpus research assistant."""
from __future__ import annotations

import asyncio

from rich.console import Console

from app.config import load_settings
from app.observability import configure_logging
from app.runtime import build_session


def main() -> int:
    settings = load_settings()
    configure_logging(settings.observability)
    console = Console()

    if not settings.openai_api_key:
        console.print("⚠️  OPENAI_API_KEY not set - every question will fail until it is configured.", style="yellow", markup=False)
    if not settings.search_api_key:
        console.print("⚠️  VALYU_API_KEY not set - corpus searches will fail.", style="yellow", markup=False)

    session = build_session(settings, console=console)
    try:
        asyncio.run(session.run())
    except KeyboardInterrupt:
        console.print()
        session.renderer.goodbye()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
