"""FastAPI application serving the DocuSync browser UI.

The page at ``/`` posts to the JSON endpoints below and renders the
returned text, so all API traffic and the credential stay server-side.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from docusync import __version__
from docusync.generators.doc_service import (
    SLOT_NAMES,
    DocumentationService,
    UnknownSlotError,
)
from docusync.generators.invoker import InvocationState
from docusync.generators.llm_client import GeminiClient
from docusync.utils.config import AppConfig

logger = logging.getLogger(__name__)

_WEB_TEMPLATES_DIR = Path(__file__).parent.parent / "templates" / "web"


class GenerateRequest(BaseModel):
    """Body of POST /api/generate."""

    source_code: str = ""


class SuggestRequest(BaseModel):
    """Body of POST /api/suggest."""

    original_code: str = ""
    updated_code: str = ""


def _state_response(state: InvocationState, rejected: bool) -> JSONResponse:
    """Map a terminal invocation state to an HTTP response.

    200 on success, 400 for errors raised before any network call,
    502 when the upstream API could not produce a result.
    """
    if state.result is not None:
        status_code = 200
    elif rejected:
        status_code = 400
    else:
        status_code = 502
    return JSONResponse(status_code=status_code, content=state.to_dict())


def create_app(
    config: Optional[AppConfig] = None,
    service: Optional[DocumentationService] = None,
) -> FastAPI:
    """Build the web application.

    Args:
        config: Application config. Uses defaults if not provided.
        service: Documentation service. Built from ``config`` if omitted.

    Returns:
        The configured FastAPI app.
    """
    config = config or AppConfig()
    service = service or DocumentationService.from_client(GeminiClient(config.api))
    templates = Jinja2Templates(directory=str(_WEB_TEMPLATES_DIR))

    app = FastAPI(title="DocuSync AI Assistant", version=__version__)
    app.state.service = service

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request) -> HTMLResponse:
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "model": config.api.model,
                "configured": service.invoker.client.is_configured,
            },
        )

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "service": "docusync"}

    @app.post("/api/generate")
    async def generate(body: GenerateRequest) -> JSONResponse:
        state = await service.generate_documentation(body.source_code)
        return _state_response(state, rejected=state.attempt == 0)

    @app.post("/api/suggest")
    async def suggest(body: SuggestRequest) -> JSONResponse:
        state = await service.suggest_update(body.original_code, body.updated_code)
        return _state_response(state, rejected=state.attempt == 0)

    @app.get("/api/slots/{slot}")
    async def slot_state(slot: str) -> dict:
        try:
            return service.snapshot(slot).to_dict()
        except UnknownSlotError:
            raise HTTPException(
                status_code=404,
                detail=f"Unknown slot '{slot}'. Expected one of: {', '.join(SLOT_NAMES)}",
            ) from None

    logger.debug("Web app created for model %s", config.api.model)
    return app
