"""Core orchestration package.

Architectural role:
    Exposes the request-orchestration layer that sits between the HTTP adapter
    and the backend, normalizer and locale modules.

Composition:
    - `engine`: check and preference operations.
    - `context`: start-up context shared by all requests.
    - `types`: request/response data contracts.
    - `errors`: failure taxonomy and status mapping.

Determinism and side effects:
    Package import itself is deterministic and side-effect free.
"""
