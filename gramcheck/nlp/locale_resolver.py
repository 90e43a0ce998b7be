"""Locale negotiation from the `Accept-Language` header.

Architectural role:
    Produces the ordered locale preference list handed to the suggestion
    component through `BackendConfig` and to `/preferences` lookups.

Resolution order:
    1. Parse header entries into `(locale, weight)` pairs.
    2. Sort by descending weight; ties keep header order (stable sort).
    3. Drop weights and duplicate locales.
    4. Append the process default language when configured and missing.

Input validation behavior:
    Malformed entries (bad tag, bad or zero weight, `*` wildcard) are skipped
    individually. A completely malformed header yields an empty list before
    the fallback step.

Determinism:
    Pure function of header value and default language.
"""

import re


# BCP 47-ish: primary subtag plus alphanumeric subtags.
_LANGUAGE_TAG = re.compile(r"^[A-Za-z]{1,8}(?:[-_][A-Za-z0-9]{1,8})*$")
_WEIGHT = re.compile(r"^q\s*=\s*([0-9](?:\.[0-9]{0,3})?)$", re.IGNORECASE)


def _parse_weight(params: list[str]) -> float | None:
    """Return the `q` weight from entry parameters, default 1.0, `None` if invalid."""
    weight = 1.0
    for param in params:
        param = param.strip()
        if not param:
            continue
        if not param.lower().startswith("q"):
            # Non-weight parameters carry no meaning for negotiation.
            continue
        match = _WEIGHT.match(param)
        if match is None:
            return None
        weight = float(match.group(1))
    if weight < 0.0 or weight > 1.0:
        return None
    return weight


def parse_accept_language(header: str | None) -> list[tuple[str, float]]:
    """Parse an `Accept-Language` value into weighted locales.

    Args:
        header: Raw header value or `None`.

    Returns:
        `(locale, weight)` pairs ordered by descending weight. Entries with
        equal weight keep their header order.
    """
    if not header:
        return []

    entries: list[tuple[str, float]] = []
    for raw_entry in header.split(","):
        parts = raw_entry.split(";")
        tag = parts[0].strip()
        if not tag or tag == "*" or not _LANGUAGE_TAG.match(tag):
            continue

        weight = _parse_weight(parts[1:])
        if weight is None or weight == 0.0:
            continue

        entries.append((tag.replace("_", "-"), weight))

    return sorted(entries, key=lambda entry: entry[1], reverse=True)


def resolve_locales(accept_language: str | None, default_language: str | None) -> list[str]:
    """Build the duplicate-free locale list for one request.

    Args:
        accept_language: Raw `Accept-Language` header value, if present.
        default_language: Process-level fallback language, if configured.

    Returns:
        Locale identifiers, highest priority first. The default language is
        present exactly once when configured.
    """
    locales: list[str] = []
    for locale, _weight in parse_accept_language(accept_language):
        if locale not in locales:
            locales.append(locale)

    if default_language and default_language not in locales:
        locales.append(default_language)

    return locales
