"""ASGI application: analysis routes, admin routes and error handling."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import HTMLResponse, JSONResponse

from analysis_orchestrator.api import admin, analysis
from analysis_orchestrator.core.config import load_config
from analysis_orchestrator.core.security import get_fernet
from analysis_orchestrator.logging import configure_logging, get_request_id
from analysis_orchestrator.middleware.request_context import RequestContextMiddleware
from analysis_orchestrator.storage.credentials import init_db
from analysis_orchestrator.telemetry.events import record_event

APP_TITLE = "Analysis Orchestrator"
OPENAPI_URL = "/api/openapi.json"

configure_logging()

logger = logging.getLogger("orchestrator.app")

app = FastAPI(
    title=APP_TITLE,
    version="0.1.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=OPENAPI_URL,
)
app.include_router(analysis.router)
app.include_router(admin.router)
app.add_middleware(RequestContextMiddleware)


@app.on_event("startup")
def prepare_storage() -> None:
    get_fernet()
    init_db()
    load_config()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/api/docs", response_class=HTMLResponse, include_in_schema=False)
def swagger_ui() -> HTMLResponse:
    return get_swagger_ui_html(openapi_url=OPENAPI_URL, title=f"{APP_TITLE} API")


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    path = request.url.path
    logger.exception(
        "Unhandled error",
        extra={"event": "request_error", "path": path, "request_id": get_request_id()},
    )
    record_event("request_error", "ERROR", message=str(exc), meta={"path": path})
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "message": "Internal server error",
                "type": "internal_server_error",
                "code": "internal_error",
            }
        },
    )
