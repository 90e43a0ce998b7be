"""Process configuration for backend selection and the HTTP server.

Architectural role:
    Centralizes start-up settings consumed by `gramcheck.backends.factory` and
    `gramcheck.api.main`.

Resolution order:
    1. Field defaults read environment variables (after `load_dotenv()`).
    2. `gramcheck.api.main` overrides them with explicit CLI flags.

Determinism:
    Deterministic for a fixed process environment. Values are resolved once at
    start-up and are not reloadable.

Failure behavior:
    Invalid values raise `ConfigurationError` from `validate()` so start-up
    aborts before any port is bound.
"""

import logging
import os
import shlex
from dataclasses import dataclass, field
from enum import Enum

from dotenv import load_dotenv

from gramcheck.core.errors import ConfigurationError

load_dotenv()


class BackendKind(str, Enum):
    """Closed set of backend strategies selectable at start-up."""

    PIPELINE = "pipeline"
    SUBPROCESS = "subprocess"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_optional(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True)
class ServerSettings:
    """Start-up configuration for one gramcheck process.

    Relevant environment variables:
        - `GRAMCHECK_BACKEND`
        - `DEFAULT_LANGUAGE`
        - `HOST`, `PORT`
        - `GRAMCHECK_POOL_SIZE`
        - `GRAMCHECK_CHECKER_ARGS`
        - `GRAMCHECK_DOCKER_IMAGE`, `GRAMCHECK_DOCKER_BIN`
        - `GRAMCHECK_BUNDLE_LOADER`
        - `GRAMCHECK_RESPAWN_UNHEALTHY`
        - `LOG_LEVEL`
    """

    path: str = ""
    backend: BackendKind = field(
        default_factory=lambda: BackendKind(os.getenv("GRAMCHECK_BACKEND", "pipeline").strip().lower())
    )
    language: str | None = field(default_factory=lambda: _env_optional("DEFAULT_LANGUAGE"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1").strip())
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "4000")))
    pool_size: int = field(default_factory=lambda: int(os.getenv("GRAMCHECK_POOL_SIZE", "4")))
    checker_args: tuple[str, ...] = field(
        default_factory=lambda: tuple(shlex.split(os.getenv("GRAMCHECK_CHECKER_ARGS", "")))
    )
    docker_image: str | None = field(default_factory=lambda: _env_optional("GRAMCHECK_DOCKER_IMAGE"))
    docker_bin: str = field(default_factory=lambda: os.getenv("GRAMCHECK_DOCKER_BIN", "docker").strip())
    bundle_loader: str = field(
        default_factory=lambda: os.getenv(
            "GRAMCHECK_BUNDLE_LOADER", "divvun_runtime:Bundle.from_bundle"
        ).strip()
    )
    respawn_unhealthy: bool = field(
        default_factory=lambda: _env_flag("GRAMCHECK_RESPAWN_UNHEALTHY", "true")
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").strip().upper())

    def validate(self) -> None:
        """Reject settings that cannot produce a working backend.

        Raises:
            ConfigurationError: On empty path, bad port or bad pool size.
        """
        if not self.path:
            raise ConfigurationError("A bundle or checker path is required")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid port: {self.port}")
        if self.backend is BackendKind.SUBPROCESS and self.pool_size < 1:
            raise ConfigurationError(f"Pool size must be at least 1, got {self.pool_size}")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")


def checker_command(settings: ServerSettings) -> list[str]:
    """Build the worker argv for the subprocess backend.

    Bare binary:
        `[path, *checker_args]`
    Containerized (`docker_image` set):
        `[docker_bin, "run", "-i", "--rm", "-v", "<dir>:<dir>:ro", image, path, *checker_args]`

    The path's directory is mounted read-only so the container sees the same
    bundle/checker file as the host.
    """
    if settings.docker_image:
        path = os.path.abspath(settings.path)
        mount_dir = os.path.dirname(path)
        return [
            settings.docker_bin,
            "run",
            "-i",
            "--rm",
            "-v",
            f"{mount_dir}:{mount_dir}:ro",
            settings.docker_image,
            path,
            *settings.checker_args,
        ]

    return [settings.path, *settings.checker_args]
