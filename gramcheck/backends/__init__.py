"""Backend access package.

Architectural role:
    Provides the two check strategies behind one `GrammarBackend` interface
    and the start-up configuration that selects between them.

Module split:
    - `backend_config`: environment-driven process settings.
    - `base`: adapter protocol.
    - `pipeline`: embedded pipeline engine adapter and bundle loading.
    - `worker_pool`: bounded pool of checker processes.
    - `subprocess_pool`: adapter over the worker pool.
    - `factory`: backend construction from settings.
"""
