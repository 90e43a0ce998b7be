"""Request normalization into backend-agnostic values.

Architectural role:
    Turns raw HTTP inputs (body fields, `encoding` query value, resolved
    locales) into a `GrammarRequest` and the JSON-shaped `BackendConfig`
    consumed by the embedded pipeline.

Input validation behavior:
    - `encoding` absent or `"utf-16"` -> UTF-16 offsets.
    - `encoding == "utf-8"` -> byte offsets.
    - Any other value -> `UnsupportedEncodingError` (HTTP 400) before any
      backend call is made.

Ignore-list handling:
    `ignore` is preferred over the deprecated `ignore_tags`. Empty lists are
    treated as absent and omitted from `BackendConfig`.

Determinism:
    Pure functions; no I/O.
"""

from gramcheck.core.errors import UnsupportedEncodingError
from gramcheck.core.types import Encoding, GrammarRequest


def parse_encoding(value: str | None) -> Encoding:
    """Map the `encoding` query parameter to an `Encoding`."""
    if value is None or value == Encoding.UTF16.value:
        return Encoding.UTF16
    if value == Encoding.UTF8.value:
        return Encoding.UTF8
    raise UnsupportedEncodingError(value)


def select_ignore_list(
    ignore: list[str] | None,
    ignore_tags: list[str] | None = None,
) -> tuple[str, ...] | None:
    """Pick the ignore list, preferring `ignore` over `ignore_tags`.

    Returns:
        The selected tags as a tuple, or `None` when absent or empty.
    """
    selected = ignore if ignore is not None else ignore_tags
    if not selected:
        return None
    return tuple(selected)


def build_request(
    text: str,
    encoding: str | None = None,
    ignore: list[str] | None = None,
    ignore_tags: list[str] | None = None,
    accept_language: str | None = None,
) -> GrammarRequest:
    """Build the immutable per-request value.

    Args:
        text: Raw body text; surrounding whitespace is trimmed.
        encoding: Raw `encoding` query value.
        ignore: Current ignore-list field.
        ignore_tags: Deprecated alias of `ignore`.
        accept_language: Raw `Accept-Language` header.

    Raises:
        UnsupportedEncodingError: For encodings other than utf-8/utf-16.
    """
    return GrammarRequest(
        text=text.strip(),
        encoding=parse_encoding(encoding),
        ignore_list=select_ignore_list(ignore, ignore_tags),
        accept_language=accept_language,
    )


def build_backend_config(request: GrammarRequest, locales: list[str]) -> dict:
    """Build the pipeline configuration for one request.

    Shape:
        `{"suggest": {"locales": [...], "encoding": "...", "ignore"?: [...]}}`
    """
    suggest_config = {
        "locales": list(locales),
        "encoding": request.encoding.value,
    }

    if request.ignore_list:
        suggest_config["ignore"] = list(request.ignore_list)

    return {"suggest": suggest_config}
