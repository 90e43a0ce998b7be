"""Backend payload decoding into the canonical error schema.

Architectural role:
    Converts whatever a backend returned into a `CanonicalResponse`, so the
    HTTP contract stays stable across backend strategies.

Decoding strategy:
    1. Unwrap transport encodings: bytes -> text, JSON text -> value. A JSON
       string that itself holds JSON is decoded a second time.
    2. Locate the entry list with an ordered set of shape candidates:
       top-level array, then an object envelope field (`errs`, `errors`).
    3. Decode each entry with an ordered set of entry candidates:
       named-key object, then positional array.

Named-key entry:
    `{"form", "beg", "end", "err", "msg": [title, description?], "rep": [...]}`

Positional entry:
    `[form, beg, end, err, description, [suggestions], title]`

Failure handling model:
    - Payload with no recognizable shape -> `BackendOutputMalformedError`.
    - Entry with missing/mistyped fields or `beg > end` -> dropped silently.
    - Non-string suggestion -> dropped individually.

Determinism:
    Pure and side-effect free; the same payload always yields an equal result.
"""

import json
import logging
from typing import Any, Callable

from gramcheck.core.errors import BackendOutputMalformedError
from gramcheck.core.types import UINT32_MAX, CanonicalError, CanonicalResponse, Encoding


logger = logging.getLogger(__name__)

ENVELOPE_FIELDS = ("errs", "errors")
MAX_DECODE_PASSES = 2
POSITIONAL_MIN_LENGTH = 7


# ============================================================
# Field helpers
# ============================================================

def _as_offset(value: Any) -> int | None:
    # bool is an int subclass but never a valid offset.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < 0 or value > UINT32_MAX:
        return None
    return value


def _as_suggestions(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _build_error(
    form: Any,
    beg: Any,
    end: Any,
    err: Any,
    title: Any,
    description: str,
    suggestions: list[str] | None,
) -> CanonicalError | None:
    start_index = _as_offset(beg)
    end_index = _as_offset(end)
    if (
        not isinstance(form, str)
        or not isinstance(err, str)
        or not isinstance(title, str)
        or start_index is None
        or end_index is None
        or suggestions is None
    ):
        return None
    if start_index > end_index:
        return None

    return CanonicalError(
        error_text=form,
        start_index=start_index,
        end_index=end_index,
        error_code=err,
        title=title,
        description=description,
        suggestions=suggestions,
    )


# ============================================================
# Entry candidates
# ============================================================

def decode_named_entry(entry: Any) -> CanonicalError | None:
    """Decode a named-key object entry, or return `None` on mismatch."""
    if not isinstance(entry, dict):
        return None

    required = ("form", "beg", "end", "err", "msg", "rep")
    if any(key not in entry for key in required):
        return None

    msg = entry["msg"]
    if not isinstance(msg, list) or not msg:
        return None

    description = msg[1] if len(msg) > 1 and isinstance(msg[1], str) else ""

    return _build_error(
        entry["form"],
        entry["beg"],
        entry["end"],
        entry["err"],
        msg[0],
        description,
        _as_suggestions(entry["rep"]),
    )


def decode_positional_entry(entry: Any) -> CanonicalError | None:
    """Decode a positional array entry, or return `None` on mismatch."""
    if not isinstance(entry, list) or len(entry) < POSITIONAL_MIN_LENGTH:
        return None

    description = entry[4]
    if not isinstance(description, str):
        return None

    return _build_error(
        entry[0],
        entry[1],
        entry[2],
        entry[3],
        entry[6],
        description,
        _as_suggestions(entry[5]),
    )


ENTRY_DECODERS: tuple[Callable[[Any], CanonicalError | None], ...] = (
    decode_named_entry,
    decode_positional_entry,
)


def decode_entry(entry: Any) -> CanonicalError | None:
    """Try each entry candidate in order; `None` when none matches."""
    for decoder in ENTRY_DECODERS:
        result = decoder(entry)
        if result is not None:
            return result
    return None


# ============================================================
# Payload decoding
# ============================================================

def decode_payload(payload: Any) -> Any:
    """Unwrap bytes and (possibly double) JSON-encoded text into a JSON value.

    Raises:
        BackendOutputMalformedError: If text cannot be decoded as JSON.
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as err:
            raise BackendOutputMalformedError("Backend output is not valid UTF-8") from err

    passes = 0
    while isinstance(payload, str) and passes < MAX_DECODE_PASSES:
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as err:
            raise BackendOutputMalformedError(
                f"Backend output is not valid JSON: {err.msg}"
            ) from err
        passes += 1

    return payload


def locate_entries(value: Any) -> list:
    """Find the per-error entry list in a decoded payload.

    Raises:
        BackendOutputMalformedError: If no known shape matches.
    """
    if isinstance(value, list):
        return value

    if isinstance(value, dict):
        for field_name in ENVELOPE_FIELDS:
            entries = value.get(field_name)
            if isinstance(entries, list):
                return entries

    raise BackendOutputMalformedError(
        f"Unexpected backend output shape: {type(value).__name__}"
    )


def normalize_response(
    payload: Any,
    text: str,
    encoding: Encoding = Encoding.UTF16,
) -> CanonicalResponse:
    """Decode a raw backend payload into a `CanonicalResponse`.

    Args:
        payload: Raw backend output (JSON value, JSON text, or bytes).
        text: Normalized input text echoed back in the response.
        encoding: Offset unit of the request. Offsets are passed through as
            reported by the backend; no conversion happens here.

    Returns:
        Canonical response containing only the structurally valid entries.

    Raises:
        BackendOutputMalformedError: If the payload is not decodable at all.
    """
    entries = locate_entries(decode_payload(payload))

    errs: list[CanonicalError] = []
    for entry in entries:
        decoded = decode_entry(entry)
        if decoded is None:
            logger.debug("Dropping undecodable entry (%s offsets): %r", encoding.value, entry)
            continue
        errs.append(decoded)

    return CanonicalResponse(text=text, errs=errs)
