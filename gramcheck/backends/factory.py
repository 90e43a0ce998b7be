"""Backend construction from start-up settings.

The backend strategy is chosen once per process from `ServerSettings.backend`
and never switched per request.
"""

import logging

from gramcheck.backends.backend_config import BackendKind, ServerSettings, checker_command
from gramcheck.backends.base import GrammarBackend
from gramcheck.backends.pipeline import EmbeddedPipelineAdapter, load_bundle
from gramcheck.backends.subprocess_pool import PooledSubprocessAdapter
from gramcheck.backends.worker_pool import WorkerPool
from gramcheck.core.errors import ConfigurationError


logger = logging.getLogger(__name__)


async def create_backend(settings: ServerSettings) -> GrammarBackend:
    """Build the configured backend. The caller is responsible for `start()`.

    Raises:
        BundleLoadError: Pipeline bundle cannot be loaded.
        ConfigurationError: Unknown backend kind.
    """
    if settings.backend is BackendKind.PIPELINE:
        bundle = await load_bundle(settings.path, settings.bundle_loader)
        return EmbeddedPipelineAdapter(bundle)

    if settings.backend is BackendKind.SUBPROCESS:
        pool = WorkerPool(
            checker_command(settings),
            size=settings.pool_size,
            respawn_unhealthy=settings.respawn_unhealthy,
        )
        return PooledSubprocessAdapter(pool)

    raise ConfigurationError(f"Unknown backend: {settings.backend!r}")
