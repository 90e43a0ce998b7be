"""HTTP API adapter for the gramcheck core.

Architectural role:
- Expose the grammar-check HTTP contract.
- Enforce adapter-level input validation (`encoding` query, JSON body).
- Delegate check work to `gramcheck.core.engine`.
- Translate the failure taxonomy into bare status codes.

Endpoint responsibilities:
- `POST /`: check the body text and return the canonical response.
- `GET /`: check `?text=` when given, otherwise serve the demo page.
- `GET /preferences`: list configurable error tags for the resolved locales.
- `GET /health`: run a full check of empty text and report its status code.

API request lifecycle (`POST /`):
1. Parse the JSON body (`text`, optional `ignore` / deprecated `ignore_tags`).
2. Validate `encoding` (400 on unsupported values, before any backend call).
3. Hand the request and `Accept-Language` header to `engine.check_text`.
4. Render `{"text", "errs"}`.

Error handling strategy:
- `ClientInputError` -> 400, invalid body -> 422, `BackendError` -> 500.
- Clients receive the status code only. Detail goes to server logs.

Shared state:
- One `AppContext` is built in the lifespan handler and stored on
  `app.state.context`; handlers receive it through `Depends(get_context)`.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from gramcheck.backends.backend_config import ServerSettings
from gramcheck.backends.factory import create_backend
from gramcheck.core import engine
from gramcheck.core.context import AppContext
from gramcheck.core.errors import ClientInputError, GramcheckError
from gramcheck.nlp.request_normalizer import build_request


logger = logging.getLogger(__name__)

PAGE_PATH = Path(__file__).resolve().parent / "static" / "index.html"


# ============================================================
# Request Schema
# ============================================================

class ProcessInput(BaseModel):
    """Body of a check request.

    `ignore_tags` is the deprecated alias of `ignore`; `ignore` wins when both
    are present.
    """

    text: str
    ignore: list[str] | None = None
    ignore_tags: list[str] | None = None


# ============================================================
# Helpers
# ============================================================

def get_context(request: Request) -> AppContext:
    """Return the shared context created at start-up."""
    return request.app.state.context


def error_response(err: GramcheckError) -> Response:
    """Log `err` and return a body-less response with its status code."""
    if isinstance(err, ClientInputError):
        logger.error("Rejected request: %s", err)
    else:
        logger.error("Check failed: %s", err, exc_info=err)
    return Response(status_code=err.status_code)


def render_page(language: str | None) -> str:
    """Load the demo page and substitute the default language."""
    return PAGE_PATH.read_text(encoding="utf-8").replace("%LANG%", language or "unknown")


async def process(
    context: AppContext,
    body: ProcessInput,
    encoding: str | None,
    accept_language: str | None,
) -> Response:
    """Shared implementation of the check operation for all routes."""
    try:
        grammar_request = build_request(
            body.text,
            encoding=encoding,
            ignore=body.ignore,
            ignore_tags=body.ignore_tags,
            accept_language=accept_language,
        )
        result = await engine.check_text(context, grammar_request)
    except GramcheckError as err:
        return error_response(err)

    return JSONResponse(content=result.to_dict())


# ============================================================
# Application
# ============================================================

def create_app(
    settings: ServerSettings | None = None,
    context: AppContext | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Start-up settings; the backend is built from them in the
            lifespan handler when `context` is not given.
        context: Prebuilt context (used by tests and embedding callers).

    Raises:
        ValueError: If neither `settings` nor `context` is given.
    """
    if settings is None and context is None:
        raise ValueError("create_app needs settings or a prebuilt context")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active = context
        if active is None:
            backend = await create_backend(settings)
            active = AppContext(backend=backend, default_language=settings.language)

        await active.backend.start()
        app.state.context = active
        logger.info("gramcheck ready (backend: %s)", active.backend.name)
        try:
            yield
        finally:
            await active.backend.close()
            logger.info("gramcheck stopped")

    app = FastAPI(title="gramcheck", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GramcheckError)
    async def handle_gramcheck_error(request: Request, err: GramcheckError) -> Response:
        return error_response(err)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, err: RequestValidationError) -> Response:
        logger.error("Rejected request body: %s", err.errors())
        return Response(status_code=422)

    # ============================================================
    # Check
    # ============================================================

    @app.post("/")
    async def process_post(
        body: ProcessInput,
        encoding: str | None = Query(default=None),
        accept_language: str | None = Header(default=None),
        context: AppContext = Depends(get_context),
    ) -> Response:
        return await process(context, body, encoding, accept_language)

    @app.get("/")
    async def process_get(
        text: str | None = Query(default=None),
        encoding: str | None = Query(default=None),
        accept_language: str | None = Header(default=None),
        context: AppContext = Depends(get_context),
    ) -> Response:
        if text is None:
            return HTMLResponse(render_page(context.default_language))
        return await process(context, ProcessInput(text=text), encoding, accept_language)

    # ============================================================
    # Preferences
    # ============================================================

    @app.get("/preferences")
    async def preferences_get(
        accept_language: str | None = Header(default=None),
        context: AppContext = Depends(get_context),
    ) -> Response:
        prefs = await engine.list_error_preferences(context, accept_language)
        return JSONResponse(content=prefs)

    # ============================================================
    # Health
    # ============================================================

    @app.get("/health")
    async def health_check(
        accept_language: str | None = Header(default=None),
        context: AppContext = Depends(get_context),
    ) -> Response:
        """Health is a full check of empty text, not a liveness ping."""
        result = await process(context, ProcessInput(text=""), None, accept_language)
        return PlainTextResponse(str(result.status_code), status_code=result.status_code)

    return app
