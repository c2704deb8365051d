"""Run the API with uvicorn: ``python -m analysis_orchestrator``."""

from __future__ import annotations

import os

import uvicorn


def main() -> None:
    host = os.getenv("UVICORN_HOST", os.getenv("HOST", "127.0.0.1"))
    port = int(os.getenv("UVICORN_PORT", os.getenv("PORT", "3001")))
    reload_enabled = os.getenv("UVICORN_RELOAD", os.getenv("RELOAD", "false")).lower() == "true"

    uvicorn.run("analysis_orchestrator.main:app", host=host, port=port, reload=reload_enabled)


if __name__ == "__main__":  # pragma: no cover
    main()
