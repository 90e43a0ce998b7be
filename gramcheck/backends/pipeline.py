"""Embedded pipeline backend.

Architectural role:
    Runs checks in-process through a pipeline engine that executes a loaded
    linguistic bundle. The engine is an external collaborator; this module
    only depends on the small protocol surface below.

Engine contract:
    - `await bundle.create(config)` -> per-request pipeline instance.
    - `instance.forward(text)` -> async iterable of outputs (the call itself
      may be a coroutine resolving to the iterable).
    - `bundle.command("suggest")` -> suggestion component or `None`;
      `suggest.error_preferences(locales)` lists error-category tags.

Request lifecycle:
    1. Create a fresh pipeline instance from `BackendConfig`.
    2. Feed it the normalized text.
    3. Consume exactly one output; later outputs are ignored and the stream
       is closed.

Failure handling model:
    - Creation failure -> `PipelineCreateError`.
    - Stream raises -> `PipelineRunError`.
    - Stream ends without output -> `PipelineEmptyError`.
    - Missing suggest command -> `CommandUnavailableError`; preference
      lookup raises -> `BackendExecutionError`.

Shared state:
    The bundle is loaded once and shared read-only by all requests. No
    per-request state outlives `check`.
"""

import importlib
import inspect
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterable, Callable, Literal, Protocol

from gramcheck.core.errors import (
    BackendExecutionError,
    BundleLoadError,
    CommandUnavailableError,
    PipelineCreateError,
    PipelineEmptyError,
    PipelineRunError,
)


logger = logging.getLogger(__name__)

SUGGEST_COMMAND = "suggest"


@dataclass(frozen=True)
class PipelineOutput:
    """Tagged pipeline output: plain text or a JSON value."""

    kind: Literal["text", "json"]
    value: Any


class PipelineInstance(Protocol):
    def forward(self, text: str) -> Any:
        ...


class Bundle(Protocol):
    async def create(self, config: dict) -> PipelineInstance:
        ...

    def command(self, name: str) -> Any:
        ...


# ============================================================
# Bundle loading
# ============================================================

def resolve_loader(reference: str) -> Callable[[str], Any]:
    """Import a bundle loader from a `"module:attr.path"` reference.

    Raises:
        BundleLoadError: If the module or attribute cannot be imported.
    """
    module_name, _, attr_path = reference.partition(":")
    if not module_name or not attr_path:
        raise BundleLoadError(f"Invalid bundle loader reference: {reference!r}")

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as err:
        raise BundleLoadError(f"Cannot import pipeline engine module {module_name!r}") from err

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as err:
            raise BundleLoadError(f"{reference!r} does not name a loader") from err

    if not callable(target):
        raise BundleLoadError(f"{reference!r} is not callable")
    return target


async def load_bundle(path: str, loader: str | Callable[[str], Any]) -> Bundle:
    """Canonicalize `path` and load the bundle through `loader`.

    Raises:
        BundleLoadError: Missing file, unresolvable loader, or loader failure.
    """
    try:
        resolved = Path(path).resolve(strict=True)
    except (FileNotFoundError, RuntimeError) as err:
        raise BundleLoadError(f"Failed to canonicalize bundle path: {path}") from err

    load = resolve_loader(loader) if isinstance(loader, str) else loader

    logger.info("Loading grammar bundle from: %s", resolved)
    try:
        bundle = load(str(resolved))
        if inspect.isawaitable(bundle):
            bundle = await bundle
    except Exception as err:
        raise BundleLoadError(
            "Failed to load grammar bundle - ensure the bundle file is valid"
        ) from err

    return bundle


# ============================================================
# Adapter
# ============================================================

def _unwrap_output(output: Any) -> Any:
    if isinstance(output, PipelineOutput):
        return output.value
    return output


class EmbeddedPipelineAdapter:
    """`GrammarBackend` running checks in a shared in-process bundle."""

    name = "pipeline"

    def __init__(self, bundle: Bundle) -> None:
        self.bundle = bundle

    async def start(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def check(self, text: str, config: dict) -> Any:
        """Run `text` through a fresh pipeline instance and return its first output."""
        try:
            pipeline = await self.bundle.create(config)
        except Exception as err:
            raise PipelineCreateError(f"Failed to create pipeline: {err!r}") from err

        try:
            stream = pipeline.forward(text)
            if inspect.isawaitable(stream):
                stream = await stream
        except Exception as err:
            raise PipelineRunError(f"Failed to start pipeline: {err!r}") from err

        output = await self._first_output(stream)
        return _unwrap_output(output)

    async def _first_output(self, stream: AsyncIterable[Any]) -> Any:
        iterator = stream.__aiter__()
        try:
            return await iterator.__anext__()
        except StopAsyncIteration as err:
            raise PipelineEmptyError("No output from pipeline") from err
        except Exception as err:
            raise PipelineRunError(f"Failed to process text: {err!r}") from err
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except Exception:
                    logger.warning("Pipeline stream did not close cleanly", exc_info=True)

    async def error_preferences(self, locales: list[str]) -> Any:
        suggest = self.bundle.command(SUGGEST_COMMAND)
        if suggest is None:
            raise CommandUnavailableError("Suggest command not found in bundle")

        try:
            prefs = suggest.error_preferences(locales)
            if inspect.isawaitable(prefs):
                prefs = await prefs
        except Exception as err:
            raise BackendExecutionError(f"Failed to list error preferences: {err!r}") from err
        return prefs
