#!/usr/bin/env python3
"""Start the Corpus Research Assistant API server."""
import os
import sys

import uvicorn

from app.config import DEFAULT_ENV_FILE, load_settings


def check_api_keys():
    """Warn about missing provider credentials."""
    settings = load_settings()
    missing = []
    if not settings.openai_api_key:
        missing.append("OPENAI_API_KEY")
    if not settings.search_api_key:
        missing.append("VALYU_API_KEY")

    if not missing:
        print("=" * 80)
        print("✅ OpenAI and Valyu API keys configured - real API calls enabled")
        print("=" * 80)
        print()
        return

    print("=" * 80)
    print(f"⚠️  WARNING: {', '.join(missing)} not configured!")
    print("=" * 80)
    print()
    if not DEFAULT_ENV_FILE.exists():
        print("No .env file found. Create one with:")
    else:
        print(".env file exists but is missing keys. Add:")
    for name in missing:
        print(f"  {name}=your-key-here")
    print()
    print("The API will start, but:")
    if "OPENAI_API_KEY" in missing:
        print("  - every chat turn will end with an error event")
    if "VALYU_API_KEY" in missing:
        print("  - corpus searches will report a failure to the model")
    print()
    print("Check readiness: GET http://localhost:8000/health/ready")
    print("=" * 80)
    print()


if __name__ == "__main__":
    check_api_keys()

    port = int(os.environ.get("PORT", 8000))
    if len(sys.argv) > 1:
        try:
            port = int(sys.argv[1])
        except ValueError:
            print(f"Invalid port: {sys.argv[1]}. Using default port 8000.")
            port = 8000

    print(f"🚀 Starting server on http://0.0.0.0:{port}")
    print(f"   API docs: http://localhost:{port}/docs")
    print()

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=port,
        log_level="info",
    )
