"""Text-request and backend-output normalization.

Module split:
    - `locale_resolver`: `Accept-Language` negotiation.
    - `request_normalizer`: encoding, ignore list and `BackendConfig`.
    - `response_normalizer`: backend payload -> canonical error schema.

All modules are pure and perform no I/O.
"""
