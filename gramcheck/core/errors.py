"""Failure taxonomy for the check pipeline.

Architectural role:
    Gives every layer one vocabulary for failures so the API adapter can map
    them to status codes without knowing which backend raised them.

Status mapping:
    - `ClientInputError` -> HTTP 400.
    - `BackendError` and subclasses -> HTTP 500.

Error handling strategy:
    Exceptions carry server-side detail in their message. The HTTP layer never
    forwards that message to clients; it is only logged.

Per-entry decode failures in `nlp.response_normalizer` are filtered silently
and never raised as any of these types.
"""


class GramcheckError(Exception):
    """Base class for all gramcheck failures."""

    status_code = 500


# ============================================================
# Client errors
# ============================================================

class ClientInputError(GramcheckError):
    """Request rejected before any backend call."""

    status_code = 400


class UnsupportedEncodingError(ClientInputError):
    def __init__(self, encoding: str):
        super().__init__(f"Unsupported encoding: {encoding}")
        self.encoding = encoding


# ============================================================
# Backend errors
# ============================================================

class BackendError(GramcheckError):
    """Backend could not produce a usable result."""


class BackendUnavailableError(BackendError):
    """Backend cannot serve the operation at all."""


class PoolAcquireError(BackendUnavailableError):
    """Worker pool could not hand out a worker (e.g. pool shut down)."""


class CommandUnavailableError(BackendUnavailableError):
    """Requested command is not provided by the loaded bundle or backend."""


class BackendExecutionError(BackendError):
    """Engine or process failed while handling the request."""


class PipelineCreateError(BackendExecutionError):
    pass


class PipelineRunError(BackendExecutionError):
    pass


class PipelineEmptyError(BackendExecutionError):
    pass


class SubprocessIOError(BackendExecutionError):
    """Write/flush/read exchange with a worker process failed."""


class BackendOutputMalformedError(BackendError):
    """Payload could not be decoded into any known shape."""


# ============================================================
# Start-up errors
# ============================================================

class ConfigurationError(GramcheckError):
    """Invalid process configuration detected at start-up."""


class BundleLoadError(GramcheckError):
    """Linguistic bundle could not be loaded at start-up."""
