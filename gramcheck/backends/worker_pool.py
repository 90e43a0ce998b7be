"""Bounded pool of long-running checker processes.

Architectural role:
    Owns N worker processes that speak a line-oriented protocol over
    stdin/stdout and leases them, one request at a time, to
    `subprocess_pool.PooledSubprocessAdapter`.

Features:
    - Start-up spawn of all N workers (bare binary or `docker run -i`).
    - Scoped leases through `async with pool.acquire() as worker`; the worker
      returns to the pool on every exit path, including cancellation.
    - Callers suspend while all N workers are leased.
    - Unhealthy workers are discarded and respawned on release, or returned
      as-is when `respawn_unhealthy` is disabled.
    - Graceful shutdown: close stdin, wait, then SIGTERM, then SIGKILL.

Usage:
    pool = WorkerPool(["divvun-checker", "-a", "se.zcheck"], size=4)
    await pool.start()

    async with pool.acquire() as worker:
        await worker.write_line("Mun leat")
        await worker.flush()
        line = await worker.read_line()

    await pool.close()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Sequence

from gramcheck.core.errors import BackendUnavailableError, PoolAcquireError


logger = logging.getLogger(__name__)

# StreamReader line limit; checker responses for long paragraphs can be large.
READ_LIMIT = 16 * 1024 * 1024


# =============================================================================
# WORKER
# =============================================================================


class Worker:
    """One checker process and its pipes.

    I/O methods raise `OSError`/`EOFError` on failure; translating them is the
    caller's concern.
    """

    def __init__(self, process: asyncio.subprocess.Process, worker_id: int) -> None:
        self.process = process
        self.worker_id = worker_id
        self.healthy = True

    def __repr__(self) -> str:
        return f"Worker(id={self.worker_id}, pid={self.process.pid}, healthy={self.healthy})"

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def is_alive(self) -> bool:
        return self.process.returncode is None

    def mark_unhealthy(self) -> None:
        self.healthy = False

    async def write_line(self, line: str) -> None:
        if not self.is_alive or self.process.stdin is None:
            raise BrokenPipeError(f"Worker {self.worker_id} exited with code {self.process.returncode}")
        self.process.stdin.write(line.encode("utf-8") + b"\n")

    async def flush(self) -> None:
        if self.process.stdin is None:
            raise BrokenPipeError(f"Worker {self.worker_id} has no stdin")
        await self.process.stdin.drain()

    async def read_line(self) -> str:
        if self.process.stdout is None:
            raise EOFError(f"Worker {self.worker_id} has no stdout")
        raw = await self.process.stdout.readline()
        if not raw:
            raise EOFError(f"Worker {self.worker_id} closed stdout")
        return raw.decode("utf-8").rstrip("\r\n")

    async def stop(self, timeout: float) -> None:
        """Stop the process: EOF on stdin, then SIGTERM, then SIGKILL."""
        if not self.is_alive:
            return

        if self.process.stdin is not None and not self.process.stdin.is_closing():
            self.process.stdin.close()

        try:
            await asyncio.wait_for(self.process.wait(), timeout)
            return
        except asyncio.TimeoutError:
            logger.warning("Worker %s didn't exit on EOF, sending SIGTERM", self.worker_id)

        try:
            self.process.terminate()
            await asyncio.wait_for(self.process.wait(), timeout)
        except ProcessLookupError:
            return
        except asyncio.TimeoutError:
            logger.warning("Worker %s didn't stop gracefully, sending SIGKILL", self.worker_id)
            with contextlib.suppress(ProcessLookupError):
                self.process.kill()
            await self.process.wait()


# =============================================================================
# POOL
# =============================================================================


class WorkerPool:
    """Fixed-size pool of exclusive `Worker` leases."""

    def __init__(
        self,
        command: Sequence[str],
        size: int,
        respawn_unhealthy: bool = True,
        shutdown_timeout: float = 5.0,
    ) -> None:
        if size < 1:
            raise ValueError(f"Pool size must be at least 1, got {size}")

        self.command = list(command)
        self.size = size
        self.respawn_unhealthy = respawn_unhealthy
        self.shutdown_timeout = shutdown_timeout

        self._idle: asyncio.Queue[Worker | None] = asyncio.Queue()
        self._workers: set[Worker] = set()
        self._replacements: set[asyncio.Task[None]] = set()
        self._next_id = 0
        self._in_use = 0
        self._max_in_use = 0
        self._started = False
        self._closed = False

    # -----------------------------------------------------------------
    # Observability
    # -----------------------------------------------------------------

    @property
    def in_use(self) -> int:
        """Number of workers currently leased."""
        return self._in_use

    @property
    def max_in_use(self) -> int:
        """Peak number of simultaneously leased workers since start."""
        return self._max_in_use

    @property
    def idle_count(self) -> int:
        # A closed pool holds exactly one shutdown sentinel.
        return max(0, self._idle.qsize() - (1 if self._closed else 0))

    @property
    def closed(self) -> bool:
        return self._closed

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    async def _spawn(self) -> Worker:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                limit=READ_LIMIT,
            )
        except FileNotFoundError as err:
            raise BackendUnavailableError(f"Command not found: {self.command[0]}") from err
        except PermissionError as err:
            raise BackendUnavailableError(f"Permission denied running: {self.command[0]}") from err

        worker = Worker(process, self._next_id)
        self._next_id += 1
        self._workers.add(worker)
        logger.debug("Spawned worker %s (PID %s)", worker.worker_id, worker.pid)
        return worker

    async def start(self) -> None:
        """Spawn all workers.

        Raises:
            BackendUnavailableError: If the checker command cannot be started.
        """
        if self._started:
            return
        self._started = True

        logger.info("Starting %d checker workers: %s", self.size, " ".join(self.command))
        try:
            for _ in range(self.size):
                self._idle.put_nowait(await self._spawn())
        except BackendUnavailableError:
            await self.close()
            raise

    async def close(self) -> None:
        """Shut the pool down and stop every worker.

        Pending and future `acquire()` calls fail with `PoolAcquireError`.
        Leased workers are stopped when their lease ends.
        """
        if self._closed:
            return
        self._closed = True
        self._idle.put_nowait(None)

        for task in list(self._replacements):
            task.cancel()
        if self._replacements:
            await asyncio.gather(*self._replacements, return_exceptions=True)

        idle: list[Worker] = []
        while not self._idle.empty():
            worker = self._idle.get_nowait()
            if worker is not None:
                idle.append(worker)
        self._idle.put_nowait(None)

        await asyncio.gather(*(self._retire(worker) for worker in idle))
        logger.info("Worker pool closed")

    async def _retire(self, worker: Worker) -> None:
        self._workers.discard(worker)
        try:
            await worker.stop(self.shutdown_timeout)
        except Exception:
            logger.exception("Error stopping worker %s", worker.worker_id)

    # -----------------------------------------------------------------
    # Leasing
    # -----------------------------------------------------------------

    @contextlib.asynccontextmanager
    async def acquire(self) -> AsyncIterator[Worker]:
        """Lease one worker for the duration of the `async with` block.

        Suspends while all workers are leased.

        Raises:
            PoolAcquireError: If the pool is not started or has been closed.
        """
        if not self._started or self._closed:
            raise PoolAcquireError("Worker pool is not running")

        worker = await self._idle.get()
        if worker is None:
            # Shutdown sentinel; leave it for the next waiter.
            self._idle.put_nowait(None)
            raise PoolAcquireError("Worker pool is shut down")

        self._in_use += 1
        self._max_in_use = max(self._max_in_use, self._in_use)
        try:
            yield worker
        finally:
            self._in_use -= 1
            self._release(worker)

    def _release(self, worker: Worker) -> None:
        if self._closed:
            self._schedule(self._retire(worker))
            return

        if worker.healthy and worker.is_alive:
            self._idle.put_nowait(worker)
            return

        if not self.respawn_unhealthy:
            logger.warning("Returning unhealthy worker %s to the pool as-is", worker.worker_id)
            self._idle.put_nowait(worker)
            return

        logger.warning("Discarding unhealthy worker %s (PID %s)", worker.worker_id, worker.pid)
        self._schedule(self._replace(worker))

    def _schedule(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._replacements.add(task)
        task.add_done_callback(self._replacements.discard)

    async def _replace(self, worker: Worker) -> None:
        await self._retire(worker)
        if self._closed:
            return
        try:
            replacement = await self._spawn()
        except BackendUnavailableError:
            logger.exception("Failed to respawn worker; pool capacity reduced")
            return

        if self._closed:
            await self._retire(replacement)
            return
        self._idle.put_nowait(replacement)
        logger.info("Respawned worker %s (PID %s)", replacement.worker_id, replacement.pid)
