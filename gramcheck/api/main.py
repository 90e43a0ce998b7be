"""Server entrypoint for gramcheck.

Architectural role:
- Resolves process configuration once (CLI flags over environment variables).
- Configures logging.
- Builds the FastAPI app and serves it with uvicorn.

Start-up lifecycle:
1. Load `.env` and parse arguments.
2. Validate `ServerSettings`.
3. Build the app; the backend (bundle or worker pool) is created in the app
   lifespan and start-up aborts if it cannot be loaded.
4. Serve until interrupted; the backend is closed on shutdown.

Error handling strategy:
- Configuration errors are logged and exit with status 2.
- Backend start-up errors surface from uvicorn's lifespan handling, which
  logs them and exits.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import logging
import sys

import uvicorn

from gramcheck.api.http_api import create_app
from gramcheck.backends.backend_config import BackendKind, ServerSettings
from gramcheck.core.errors import ConfigurationError


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gramcheck",
        description="HTTP grammar checking service over a pipeline bundle or checker processes",
    )
    parser.add_argument("path", help="Path to the grammar bundle (pipeline) or checker binary (subprocess)")
    parser.add_argument(
        "--backend",
        choices=[kind.value for kind in BackendKind],
        default=None,
        help="Backend strategy (env: GRAMCHECK_BACKEND, default: pipeline)",
    )
    parser.add_argument(
        "--language",
        default=None,
        help="Default language for localizations (env: DEFAULT_LANGUAGE)",
    )
    parser.add_argument("--host", default=None, help="Host to bind the server to (env: HOST, default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Port to run the server on (env: PORT, default: 4000)")
    parser.add_argument(
        "--pool-size",
        type=int,
        default=None,
        help="Number of checker processes (env: GRAMCHECK_POOL_SIZE, default: 4)",
    )
    parser.add_argument(
        "--checker-arg",
        action="append",
        default=None,
        help="Extra argument passed to each checker process (repeatable, env: GRAMCHECK_CHECKER_ARGS)",
    )
    parser.add_argument(
        "--image",
        default=None,
        help="Run checkers inside this container image (env: GRAMCHECK_DOCKER_IMAGE)",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (env: LOG_LEVEL, default: INFO)")
    return parser


def settings_from_args(args: argparse.Namespace) -> ServerSettings:
    """Overlay explicit CLI flags on environment-derived defaults.

    Raises:
        ConfigurationError: On invalid environment values or settings.
    """
    overrides = {
        "backend": BackendKind(args.backend) if args.backend else None,
        "language": args.language,
        "host": args.host,
        "port": args.port,
        "pool_size": args.pool_size,
        "checker_args": tuple(args.checker_arg) if args.checker_arg else None,
        "docker_image": args.image,
        "log_level": args.log_level.upper() if args.log_level else None,
    }

    try:
        settings = ServerSettings(
            path=args.path,
            **{key: value for key, value in overrides.items() if value is not None},
        )
    except ValueError as err:
        raise ConfigurationError(f"Invalid configuration: {err}") from err

    settings.validate()
    return settings


def main(argv: list[str] | None = None) -> None:
    """Parse configuration and serve until interrupted."""
    args = build_parser().parse_args(argv)

    try:
        settings = settings_from_args(args)
    except ConfigurationError as err:
        logging.basicConfig(level=logging.INFO)
        logger.error("%s", err)
        sys.exit(2)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings=settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
