"""Unit tests for request normalization."""

from __future__ import annotations

import pytest

from gramcheck.core.errors import ClientInputError, UnsupportedEncodingError
from gramcheck.core.types import Encoding
from gramcheck.nlp.request_normalizer import (
    build_backend_config,
    build_request,
    parse_encoding,
    select_ignore_list,
)


class TestParseEncoding:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, Encoding.UTF16), ("utf-16", Encoding.UTF16), ("utf-8", Encoding.UTF8)],
    )
    def test_supported_values(self, value: str | None, expected: Encoding) -> None:
        assert parse_encoding(value) is expected

    @pytest.mark.parametrize("value", ["latin1", "UTF-8", "utf8", ""])
    def test_unsupported_values_are_client_errors(self, value: str) -> None:
        with pytest.raises(UnsupportedEncodingError) as exc_info:
            parse_encoding(value)
        assert isinstance(exc_info.value, ClientInputError)
        assert exc_info.value.status_code == 400


class TestSelectIgnoreList:
    def test_prefers_ignore_over_deprecated_alias(self) -> None:
        assert select_ignore_list(["a"], ["b"]) == ("a",)

    def test_falls_back_to_ignore_tags(self) -> None:
        assert select_ignore_list(None, ["b", "c"]) == ("b", "c")

    def test_empty_lists_are_absent(self) -> None:
        assert select_ignore_list([], None) is None
        assert select_ignore_list(None, []) is None
        assert select_ignore_list(None, None) is None


class TestBuildRequest:
    def test_trims_text(self) -> None:
        request = build_request("  Mun leat  \n")
        assert request.text == "Mun leat"
        assert request.encoding is Encoding.UTF16

    def test_empty_text_is_valid(self) -> None:
        assert build_request("   ").text == ""

    def test_rejects_bad_encoding(self) -> None:
        with pytest.raises(UnsupportedEncodingError):
            build_request("text", encoding="latin1")


class TestBuildBackendConfig:
    def test_config_shape_without_ignore(self) -> None:
        request = build_request("x", encoding="utf-8")
        config = build_backend_config(request, ["nb", "se"])
        assert config == {"suggest": {"locales": ["nb", "se"], "encoding": "utf-8"}}

    def test_config_includes_ignore_list(self) -> None:
        request = build_request("x", ignore=["typo", "space"])
        config = build_backend_config(request, [])
        assert config["suggest"]["ignore"] == ["typo", "space"]
        assert config["suggest"]["encoding"] == "utf-16"
