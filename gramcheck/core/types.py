"""Request/response data contracts shared by the check pipeline.

Architectural role:
    Defines the backend-agnostic values that flow between the API adapter,
    the normalizers and the backend adapters in `gramcheck.backends`.

Lifecycle:
    - `GrammarRequest` is built once per HTTP request and never mutated.
    - `CanonicalResponse` is produced by `nlp.response_normalizer` and rendered
      by the API layer through `to_dict()`.

Determinism:
    The data classes are purely structural and state-free.
"""

from dataclasses import dataclass, field
from enum import Enum


UINT32_MAX = 0xFFFFFFFF


class Encoding(str, Enum):
    """Offset unit requested by the client for `start_index`/`end_index`."""

    UTF8 = "utf-8"
    UTF16 = "utf-16"


@dataclass(frozen=True)
class GrammarRequest:
    """One normalized check request.

    Attributes:
        text: Input text, already trimmed.
        encoding: Offset unit requested through the `encoding` query parameter.
        ignore_list: Error tags the suggestion component should skip, or `None`.
        accept_language: Raw `Accept-Language` header value, if any.
    """

    text: str
    encoding: Encoding = Encoding.UTF16
    ignore_list: tuple[str, ...] | None = None
    accept_language: str | None = None


@dataclass(frozen=True)
class CanonicalError:
    """A single grammar error in the client-facing schema.

    Offsets are byte or UTF-16 unit offsets depending on the request encoding;
    `end_index` is exclusive.
    """

    error_text: str
    start_index: int
    end_index: int
    error_code: str
    title: str
    description: str = ""
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "error_text": self.error_text,
            "start_index": self.start_index,
            "end_index": self.end_index,
            "error_code": self.error_code,
            "description": self.description,
            "suggestions": list(self.suggestions),
            "title": self.title,
        }


@dataclass(frozen=True)
class CanonicalResponse:
    """Normalized check result echoed back to the client."""

    text: str
    errs: list[CanonicalError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "errs": [err.to_dict() for err in self.errs],
        }
