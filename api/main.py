"""
FastAPI Backend for DocInsight.

This module exposes the single document session over HTTP:
- Input selection (pasted text or uploaded file)
- Summary generation and the rendered summary document
- Follow-up questions and term definitions

Architecture:
    Client -> FastAPI -> Orchestrator -> Gemini
"""

from datetime import datetime
from typing import Any, Dict, Optional

import msgspec
from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from api.security import get_security_headers, validate_configuration
from docinsight.config import AppConfig, load_config
from docinsight.error_handling import ConfigurationError
from docinsight.logging_config import setup_logging
from docinsight.models import Anchor
from docinsight.orchestrator import DocInsightOrchestrator, OperationOutcome


STATUS_CODES = {
    "ok": 200,
    "closed": 200,
    "stale": 200,
    "invalid": 400,
    "busy": 409,
    "failed": 502,
}


# =============================================================================
# Request Models
# =============================================================================


class InputRequest(BaseModel):
    """Pasted document text."""

    text: str


class QuestionRequest(BaseModel):
    """Follow-up question about the summary."""

    question: str


class AnchorModel(BaseModel):
    """Screen position of an activated term."""

    x: float = 0.0
    y: float = 0.0


class DefineRequest(BaseModel):
    """Term lookup request."""

    term: str
    anchor: Optional[AnchorModel] = None


class DismissRequest(BaseModel):
    """Interaction somewhere on the page while a definition is open."""

    inside_popover: bool = False
    on_term: bool = False


# =============================================================================
# Helpers
# =============================================================================


def get_orchestrator(request: Request) -> DocInsightOrchestrator:
    """Lazy initialization of the session orchestrator."""
    app = request.app
    if app.state.orchestrator is None:
        app.state.orchestrator = DocInsightOrchestrator(config=app.state.config)
        logger.info("Orchestrator initialized", session_id=app.state.orchestrator.session_id)
    return app.state.orchestrator


def outcome_response(
    orchestrator: DocInsightOrchestrator,
    outcome: OperationOutcome,
    failure_code: int = 502
) -> JSONResponse:
    status_code = STATUS_CODES[outcome.status]
    if outcome.status == "failed":
        status_code = failure_code
    return JSONResponse(
        status_code=status_code,
        content={
            "outcome": msgspec.to_builtins(outcome),
            "session": orchestrator.snapshot(),
        },
    )


def _anchor(model: Optional[AnchorModel]) -> Anchor:
    if model is None:
        return Anchor()
    return Anchor(x=model.x, y=model.y)


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    config: Optional[AppConfig] = None,
    orchestrator: Optional[DocInsightOrchestrator] = None,
    configure_logging: bool = True
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application configuration (loaded from the environment if
            not provided)
        orchestrator: Pre-built orchestrator, mainly for tests
        configure_logging: Whether to install the Loguru sinks

    Returns:
        FastAPI application
    """
    config = config or (orchestrator.config if orchestrator else load_config())

    if configure_logging:
        setup_logging(log_dir=config.log_dir, level=config.log_level)

    checks = validate_configuration(config)
    for warning in checks["warnings"]:
        logger.warning(warning)
    for error in checks["errors"]:
        logger.error(f"Configuration problem: {error}")

    app = FastAPI(
        title="DocInsight",
        description="Document summaries with flagged terms, definitions and follow-up questions",
        version="0.1.0",
    )
    app.state.config = config
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request, call_next):
        """Inject security headers into all responses."""
        response = await call_next(request)
        for header, value in get_security_headers().items():
            response.headers[header] = value
        return response

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        """Missing or malformed configuration makes the service unavailable."""
        logger.error("Service not configured", error=str(exc))
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    # =========================================================================
    # API Endpoints
    # =========================================================================

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "DocInsight API",
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "session": "/session",
                "summarize": "/session/summarize",
                "summary": "/session/summary",
                "ask": "/session/ask",
                "define": "/session/define",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    @app.get("/session")
    async def get_session(orch: DocInsightOrchestrator = Depends(get_orchestrator)) -> Dict[str, Any]:
        """Current session snapshot."""
        return orch.snapshot()

    @app.delete("/session")
    async def reset_session(request: Request, orch: DocInsightOrchestrator = Depends(get_orchestrator)):
        """Discard the session and start an empty one."""
        fresh = DocInsightOrchestrator(config=orch.config, client=orch.client)
        request.app.state.orchestrator = fresh
        logger.info("Session reset", old_session_id=orch.session_id, session_id=fresh.session_id)
        return fresh.snapshot()

    @app.put("/session/input")
    async def set_input(body: InputRequest, orch: DocInsightOrchestrator = Depends(get_orchestrator)):
        """Use pasted text as the document."""
        return outcome_response(orch, orch.set_input(body.text))

    @app.post("/session/file")
    async def upload_file(
        file: UploadFile = File(...),
        orch: DocInsightOrchestrator = Depends(get_orchestrator),
    ):
        """Select a text file or PDF as the document."""
        content = await file.read()
        logger.info("Received file", filename=file.filename, size_bytes=len(content))
        outcome = orch.select_file(file.filename or "upload", content, file.content_type)
        return outcome_response(orch, outcome, failure_code=500)

    @app.delete("/session/file")
    async def clear_file(orch: DocInsightOrchestrator = Depends(get_orchestrator)):
        """Clear the selected file and the input text."""
        return outcome_response(orch, orch.clear_attachment())

    @app.post("/session/summarize")
    async def summarize(orch: DocInsightOrchestrator = Depends(get_orchestrator)):
        """Generate the summary of the current input."""
        return outcome_response(orch, await orch.summarize())

    @app.get("/session/summary")
    async def rendered_summary(orch: DocInsightOrchestrator = Depends(get_orchestrator)):
        """Current summary as rendered blocks with interactive terms."""
        return {
            "summary": orch.state.summary,
            "document": msgspec.to_builtins(orch.render_summary()),
        }

    @app.post("/session/terms/{span_id}/activate")
    async def activate_term(
        span_id: str,
        anchor: Optional[AnchorModel] = None,
        orch: DocInsightOrchestrator = Depends(get_orchestrator),
    ):
        """Activate a complex-term span of the last rendered summary."""
        return outcome_response(orch, await orch.activate_term(span_id, _anchor(anchor)))

    @app.post("/session/ask")
    async def ask(body: QuestionRequest, orch: DocInsightOrchestrator = Depends(get_orchestrator)):
        """Ask a follow-up question about the summary."""
        return outcome_response(orch, await orch.ask(body.question))

    @app.post("/session/define")
    async def define(body: DefineRequest, orch: DocInsightOrchestrator = Depends(get_orchestrator)):
        """Open (or toggle closed) the definition of a term."""
        return outcome_response(orch, await orch.define(body.term, _anchor(body.anchor)))

    @app.delete("/session/definition")
    async def close_definition(orch: DocInsightOrchestrator = Depends(get_orchestrator)):
        """Close the definition popover."""
        return outcome_response(orch, orch.close_definition())

    @app.post("/session/dismiss")
    async def dismiss(body: DismissRequest, orch: DocInsightOrchestrator = Depends(get_orchestrator)):
        """Close the popover for an interaction outside it and outside any term."""
        return outcome_response(orch, orch.dismiss_definition(body.inside_popover, body.on_term))

    return app
