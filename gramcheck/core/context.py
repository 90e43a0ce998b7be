"""Process-wide context shared by all request handlers.

Architectural role:
    Holds the one backend instance and the default language resolved at
    start-up. The API layer stores it on `app.state` and hands it to each
    handler explicitly; nothing in the request path reads module globals.

Shared state:
    The context is read-only after construction. Mutable resources (pool,
    bundle) live inside the backend and manage their own concurrency.
"""

from dataclasses import dataclass

from gramcheck.backends.base import GrammarBackend


@dataclass(frozen=True)
class AppContext:
    backend: GrammarBackend
    default_language: str | None = None
