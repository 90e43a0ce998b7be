"""Core request orchestration for grammar checks.

Architectural role:
    Composes locale resolution, request normalization, backend dispatch and
    response normalization into the operations exposed by `gramcheck.api`.

Control-flow model (`check_text`):
    1. Resolve the locale list from `Accept-Language` and the default language.
    2. Build `BackendConfig` from the request and locales.
    3. Dispatch to the configured backend (the only suspension point).
    4. Normalize the raw payload into a `CanonicalResponse`.

Interaction surface:
    - Locale: `nlp.locale_resolver.resolve_locales`.
    - Request: `nlp.request_normalizer.build_backend_config`.
    - Backend: `AppContext.backend` (`GrammarBackend`).
    - Response: `nlp.response_normalizer.normalize_response`.

Error handling strategy:
    Failures surface as `GramcheckError` subclasses and propagate to the API
    adapter, which maps them to status codes and logs the detail. No retries.

Determinism:
    Everything except the backend call is deterministic for fixed inputs.
"""

import logging
import os
from typing import Any

from gramcheck.core.context import AppContext
from gramcheck.core.types import CanonicalResponse, GrammarRequest
from gramcheck.nlp.locale_resolver import resolve_locales
from gramcheck.nlp.request_normalizer import build_backend_config
from gramcheck.nlp.response_normalizer import normalize_response


logger = logging.getLogger(__name__)

# Raw payload logging is opt-in.
DEBUG = os.getenv("GRAMCHECK_DEBUG") == "true"


async def check_text(context: AppContext, request: GrammarRequest) -> CanonicalResponse:
    """Run one grammar check end to end.

    Args:
        context: Shared start-up context (backend, default language).
        request: Normalized request; `request.text` may be empty.

    Returns:
        Canonical response echoing `request.text`.

    Raises:
        BackendError: Backend unavailable, failed, or returned undecodable output.
    """
    locales = resolve_locales(request.accept_language, context.default_language)
    config = build_backend_config(request, locales)

    payload = await context.backend.check(request.text, config)

    if DEBUG:
        logger.debug("Backend output: %r", payload)

    response = normalize_response(payload, request.text, request.encoding)
    logger.debug(
        "Checked %d chars via %s: %d errors", len(request.text), context.backend.name, len(response.errs)
    )
    return response


async def list_error_preferences(context: AppContext, accept_language: str | None) -> dict[str, Any]:
    """Return the configurable error-category tags for the resolved locales.

    Raises:
        CommandUnavailableError: The backend cannot list preferences.
    """
    locales = resolve_locales(accept_language, context.default_language)
    prefs = await context.backend.error_preferences(locales)
    return {"error_tags": prefs}
