"""Shared pytest fixtures for gramcheck tests."""

from __future__ import annotations

import pytest

from gramcheck.core.context import AppContext

from tests.doubles import StubBackend


@pytest.fixture
def stub_backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def context(stub_backend: StubBackend) -> AppContext:
    return AppContext(backend=stub_backend, default_language="se")
