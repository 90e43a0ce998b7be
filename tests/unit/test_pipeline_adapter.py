"""Unit tests for the embedded pipeline backend and bundle loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gramcheck.backends.pipeline import (
    EmbeddedPipelineAdapter,
    PipelineOutput,
    load_bundle,
    resolve_loader,
)
from gramcheck.core.errors import (
    BackendExecutionError,
    BundleLoadError,
    CommandUnavailableError,
    PipelineCreateError,
    PipelineEmptyError,
    PipelineRunError,
)

from tests.doubles import FakeBundle, FakeSuggest

CONFIG = {"suggest": {"locales": ["se"], "encoding": "utf-16"}}


# =============================================================================
# CHECK
# =============================================================================


class TestCheck:
    @pytest.mark.asyncio
    async def test_returns_first_output_and_passes_config(self) -> None:
        bundle = FakeBundle(outputs=['{"errs": []}'])
        adapter = EmbeddedPipelineAdapter(bundle)

        payload = await adapter.check("Mun leat", CONFIG)

        assert payload == '{"errs": []}'
        assert bundle.configs == [CONFIG]
        assert bundle.pipelines[0].inputs == ["Mun leat"]

    @pytest.mark.asyncio
    async def test_fresh_pipeline_per_request(self) -> None:
        bundle = FakeBundle()
        adapter = EmbeddedPipelineAdapter(bundle)

        await adapter.check("a", CONFIG)
        await adapter.check("b", CONFIG)

        assert len(bundle.pipelines) == 2
        assert bundle.pipelines[0] is not bundle.pipelines[1]

    @pytest.mark.asyncio
    async def test_unwraps_tagged_json_output(self) -> None:
        value = [{"form": "x"}]
        adapter = EmbeddedPipelineAdapter(FakeBundle(outputs=[PipelineOutput(kind="json", value=value)]))
        assert await adapter.check("x", CONFIG) is value

    @pytest.mark.asyncio
    async def test_unwraps_tagged_text_output(self) -> None:
        text = json.dumps({"errs": []})
        adapter = EmbeddedPipelineAdapter(FakeBundle(outputs=[PipelineOutput(kind="text", value=text)]))
        assert await adapter.check("x", CONFIG) == text

    @pytest.mark.asyncio
    async def test_only_first_output_consumed(self) -> None:
        bundle = FakeBundle(outputs=["first", "second", "third"])
        adapter = EmbeddedPipelineAdapter(bundle)

        assert await adapter.check("x", CONFIG) == "first"
        pipeline = bundle.pipelines[0]
        assert pipeline.yielded == 1
        assert pipeline.stream_closed is True

    @pytest.mark.asyncio
    async def test_create_failure(self) -> None:
        adapter = EmbeddedPipelineAdapter(FakeBundle(create_error=ValueError("bad config")))
        with pytest.raises(PipelineCreateError):
            await adapter.check("x", CONFIG)

    @pytest.mark.asyncio
    async def test_stream_error(self) -> None:
        adapter = EmbeddedPipelineAdapter(FakeBundle(outputs=[RuntimeError("engine fault")]))
        with pytest.raises(PipelineRunError):
            await adapter.check("x", CONFIG)

    @pytest.mark.asyncio
    async def test_empty_stream(self) -> None:
        adapter = EmbeddedPipelineAdapter(FakeBundle(outputs=[]))
        with pytest.raises(PipelineEmptyError):
            await adapter.check("x", CONFIG)

    @pytest.mark.asyncio
    async def test_synchronous_forward_returning_async_iterable(self) -> None:
        class SyncForwardPipeline:
            def forward(self, text: str):
                async def stream():
                    yield f"echo:{text}"

                return stream()

        class Bundle:
            async def create(self, config: dict) -> SyncForwardPipeline:
                return SyncForwardPipeline()

            def command(self, name: str) -> None:
                return None

        adapter = EmbeddedPipelineAdapter(Bundle())
        assert await adapter.check("x", CONFIG) == "echo:x"


# =============================================================================
# PREFERENCES
# =============================================================================


class TestErrorPreferences:
    @pytest.mark.asyncio
    async def test_returns_suggest_preferences(self) -> None:
        suggest = FakeSuggest({"typo": {"se": "Čállinmeattáhusat"}})
        adapter = EmbeddedPipelineAdapter(FakeBundle(suggest=suggest))

        prefs = await adapter.error_preferences(["nb", "se"])

        assert prefs == {"typo": {"se": "Čállinmeattáhusat"}}
        assert suggest.calls == [["nb", "se"]]

    @pytest.mark.asyncio
    async def test_missing_suggest_command(self) -> None:
        adapter = EmbeddedPipelineAdapter(FakeBundle(suggest=None))
        with pytest.raises(CommandUnavailableError):
            await adapter.error_preferences(["se"])

    @pytest.mark.asyncio
    async def test_lookup_failure_is_execution_error(self) -> None:
        suggest = FakeSuggest(None, error=KeyError("se"))
        adapter = EmbeddedPipelineAdapter(FakeBundle(suggest=suggest))

        with pytest.raises(BackendExecutionError) as exc_info:
            await adapter.error_preferences(["se"])
        assert isinstance(exc_info.value.__cause__, KeyError)


# =============================================================================
# BUNDLE LOADING
# =============================================================================


class TestLoadBundle:
    @pytest.mark.asyncio
    async def test_loads_with_callable(self, tmp_path: Path) -> None:
        bundle_path = tmp_path / "se.drb"
        bundle_path.write_bytes(b"bundle")
        loaded: list[str] = []

        def loader(path: str) -> FakeBundle:
            loaded.append(path)
            return FakeBundle()

        bundle = await load_bundle(str(bundle_path), loader)

        assert isinstance(bundle, FakeBundle)
        assert loaded == [str(bundle_path.resolve())]

    @pytest.mark.asyncio
    async def test_awaits_async_loader(self, tmp_path: Path) -> None:
        bundle_path = tmp_path / "se.drb"
        bundle_path.write_bytes(b"bundle")

        async def loader(path: str) -> FakeBundle:
            return FakeBundle()

        assert isinstance(await load_bundle(str(bundle_path), loader), FakeBundle)

    @pytest.mark.asyncio
    async def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(BundleLoadError):
            await load_bundle(str(tmp_path / "missing.drb"), lambda path: FakeBundle())

    @pytest.mark.asyncio
    async def test_loader_failure(self, tmp_path: Path) -> None:
        bundle_path = tmp_path / "broken.drb"
        bundle_path.write_bytes(b"")

        def loader(path: str) -> FakeBundle:
            raise ValueError("invalid bundle")

        with pytest.raises(BundleLoadError):
            await load_bundle(str(bundle_path), loader)


class TestResolveLoader:
    def test_resolves_dotted_attribute(self) -> None:
        assert resolve_loader("json:loads") is json.loads
        assert resolve_loader("pathlib:Path.cwd") == Path.cwd

    @pytest.mark.parametrize(
        "reference",
        ["json", ":loads", "no_such_engine_module:load", "json:no_such_attr", "json:__name__"],
    )
    def test_invalid_references(self, reference: str) -> None:
        with pytest.raises(BundleLoadError):
            resolve_loader(reference)
