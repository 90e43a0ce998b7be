"""Unit tests for Accept-Language negotiation."""

from __future__ import annotations

import pytest

from gramcheck.nlp.locale_resolver import parse_accept_language, resolve_locales


class TestParseAcceptLanguage:
    """Tests for parse_accept_language."""

    def test_orders_by_descending_weight(self) -> None:
        parsed = parse_accept_language("en;q=0.5, nb-NO, se;q=0.8")
        assert parsed == [("nb-NO", 1.0), ("se", 0.8), ("en", 0.5)]

    def test_ties_keep_header_order(self) -> None:
        parsed = parse_accept_language("fi;q=0.7, sv;q=0.7, en;q=0.7")
        assert [locale for locale, _ in parsed] == ["fi", "sv", "en"]

    def test_default_weight_is_one(self) -> None:
        assert parse_accept_language("sma") == [("sma", 1.0)]

    @pytest.mark.parametrize("header", [None, "", "   ", ",,,", ";q=0.5"])
    def test_empty_or_blank_headers(self, header: str | None) -> None:
        assert parse_accept_language(header) == []

    def test_skips_wildcard_and_zero_weight(self) -> None:
        parsed = parse_accept_language("*, de;q=0, fr;q=0.3")
        assert parsed == [("fr", 0.3)]

    def test_skips_invalid_weights_and_tags(self) -> None:
        parsed = parse_accept_language("en;q=abc, nb;q=1.5, !!;q=0.9, smj;q=0.4")
        assert parsed == [("smj", 0.4)]

    def test_normalizes_underscore_separator(self) -> None:
        assert parse_accept_language("nb_NO") == [("nb-NO", 1.0)]


class TestResolveLocales:
    """Tests for resolve_locales."""

    def test_appends_default_language_last(self) -> None:
        assert resolve_locales("nb, en;q=0.5", "se") == ["nb", "en", "se"]

    def test_default_language_not_duplicated(self) -> None:
        locales = resolve_locales("en;q=0.2, se", "se")
        assert locales == ["se", "en"]
        assert locales.count("se") == 1

    def test_no_header_yields_default_only(self) -> None:
        assert resolve_locales(None, "se") == ["se"]

    def test_no_header_no_default_is_empty(self) -> None:
        assert resolve_locales(None, None) == []

    def test_malformed_header_falls_back_to_default(self) -> None:
        assert resolve_locales(";;;q=x", "sma") == ["sma"]

    def test_duplicates_keep_highest_priority_position(self) -> None:
        locales = resolve_locales("en;q=0.3, fi, en;q=0.9", None)
        assert locales == ["fi", "en"]

    @pytest.mark.parametrize(
        "header",
        ["se, se, se", "nb;q=0.1, se;q=0.1, nb", "en, en-GB, en;q=0.5, se"],
    )
    def test_never_contains_duplicates(self, header: str) -> None:
        locales = resolve_locales(header, "se")
        assert len(locales) == len(set(locales))
        assert locales.count("se") == 1
