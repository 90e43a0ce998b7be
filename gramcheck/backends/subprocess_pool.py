"""Pooled subprocess backend.

Architectural role:
    Runs checks through a `WorkerPool` of long-running checker processes.
    Configuration (language, encoding, ignore lists) is baked into the worker
    command at pool creation, so the per-request `BackendConfig` is ignored.

Request lifecycle:
    1. Lease a worker (`async with pool.acquire()`); suspends while all N
       workers are busy.
    2. Write the text as one line, flush, read one response line.
    3. Release the worker on every exit path.

Failure handling model:
    - Pool shut down / not running -> `PoolAcquireError`.
    - Broken pipe, EOF, dead process -> `SubprocessIOError`; the worker is
      marked unhealthy and the pool applies its replacement policy.
    - An exchange interrupted by cancellation also marks the worker
      unhealthy, since an unread response line would desync the next lease.
"""

import asyncio
import logging
from typing import Any

from gramcheck.backends.worker_pool import WorkerPool
from gramcheck.core.errors import CommandUnavailableError, SubprocessIOError


logger = logging.getLogger(__name__)


def to_single_line(text: str) -> str:
    """Blank out CR and LF so one request is exactly one protocol line.

    Each break character becomes one space, so checker offsets still index
    the original text.
    """
    return text.replace("\r", " ").replace("\n", " ")


class PooledSubprocessAdapter:
    """`GrammarBackend` over a shared `WorkerPool`."""

    name = "subprocess"

    def __init__(self, pool: WorkerPool) -> None:
        self.pool = pool

    async def start(self) -> None:
        await self.pool.start()

    async def close(self) -> None:
        await self.pool.close()

    async def check(self, text: str, config: dict) -> Any:
        async with self.pool.acquire() as worker:
            try:
                await worker.write_line(to_single_line(text))
                await worker.flush()
                line = await worker.read_line()
            except (OSError, EOFError, ValueError) as err:
                # ValueError: response line exceeded the reader limit.
                worker.mark_unhealthy()
                raise SubprocessIOError(
                    f"Worker {worker.worker_id} exchange failed: {err!r}"
                ) from err
            except asyncio.CancelledError:
                worker.mark_unhealthy()
                raise

        logger.debug("Worker response: %s", line)
        return line

    async def error_preferences(self, locales: list[str]) -> Any:
        raise CommandUnavailableError("Error preferences are not available from checker subprocesses")
