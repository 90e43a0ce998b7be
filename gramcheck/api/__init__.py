"""gramcheck HTTP surface.

Modules:
- `http_api`: FastAPI app factory, routes and status-code mapping.
- `main`: command-line entrypoint that resolves settings and runs uvicorn.

Check orchestration lives in `gramcheck.core.engine`; this package only
validates transport input and shapes responses.
"""
