"""Map vector-search hits of varying shape onto :class:`DocumentSource`.

The backend schema is not contractually fixed, so each attribute is resolved
from an ordered list of candidate field paths. The first path whose value has
the expected type wins, regardless of truthiness; an empty title string still
counts. Supporting a new schema variant means appending a path to the table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from docagent.models import DocumentSource

FieldPath = tuple[str, ...]


def _is_text(value: Any) -> bool:
    return isinstance(value, str)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class FieldRule:
    """Ordered lookup for one logical attribute of a hit."""

    paths: Sequence[FieldPath]
    accepts: Callable[[Any], bool]
    default: Any = None

    def resolve(self, hit: Mapping[str, Any]) -> Any:
        for path in self.paths:
            found, value = _lookup(hit, path)
            if found and self.accepts(value):
                return value
        return self.default


def _lookup(hit: Mapping[str, Any], path: FieldPath) -> tuple[bool, Any]:
    current: Any = hit
    for key in path:
        if not isinstance(current, Mapping) or key not in current:
            return False, None
        current = current[key]
    return True, current


FIELD_RULES: Mapping[str, FieldRule] = {
    "title": FieldRule(
        paths=(
            ("metadata", "title"),
            ("title",),
            ("metadata", "name"),
            ("name",),
            ("metadata", "filename"),
            ("filename",),
        ),
        accepts=_is_text,
        default="Document",
    ),
    "content": FieldRule(
        paths=(("text",), ("content",), ("chunk",), ("metadata", "text")),
        accepts=_is_text,
        default="",
    ),
    "url": FieldRule(
        paths=(("metadata", "url"), ("url",), ("metadata", "source"), ("source",)),
        accepts=_is_text,
        default=None,
    ),
    "score": FieldRule(
        paths=(("score",), ("relevance_score",), ("similarity",), ("distance",)),
        accepts=_is_number,
        default=0.0,
    ),
}


def normalize_hit(hit: Mapping[str, Any], rules: Mapping[str, FieldRule] = FIELD_RULES) -> DocumentSource:
    """Build a citation from one backend hit."""

    return DocumentSource(
        title=rules["title"].resolve(hit),
        content=rules["content"].resolve(hit),
        url=rules["url"].resolve(hit),
        score=float(rules["score"].resolve(hit)),
    )


def normalize_hits(hits: Sequence[Mapping[str, Any]], rules: Mapping[str, FieldRule] = FIELD_RULES) -> list[DocumentSource]:
    return [normalize_hit(hit, rules) for hit in hits]


__all__ = ["FIELD_RULES", "FieldRule", "normalize_hit", "normalize_hits"]
