"""Backend adapter interface.

Architectural role:
    Defines the one boundary the orchestration layer calls, regardless of
    whether checks run in an embedded pipeline or in pooled subprocesses.

Implementations:
    - `pipeline.EmbeddedPipelineAdapter`
    - `subprocess_pool.PooledSubprocessAdapter`

Contract:
    - `check` returns one raw payload (JSON value or JSON text) for the
      response normalizer, or raises a `BackendError` subclass.
    - `error_preferences` returns engine-defined error-category tags, or
      raises `CommandUnavailableError` when the backend cannot list them.
    - `start`/`close` bracket the process lifetime and are called once.
"""

from typing import Any, Protocol


class GrammarBackend(Protocol):
    """Minimal async interface required by `gramcheck.core.engine`."""

    name: str

    async def start(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def check(self, text: str, config: dict) -> Any:
        """Run one check and return the raw backend payload."""
        ...

    async def error_preferences(self, locales: list[str]) -> Any:
        """Return configurable error-category tags for `locales`."""
        ...
