"""Validation and truncation of untrusted request fields.

Everything that arrives from a caller passes through here before it reaches
the scorer or the reranker. Oversized text is truncated; structural problems
(missing question, too many candidates, nothing usable left) raise
`ValidationError`.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import ValidationError
from .logging_config import get_logger
from .schema import Passage

log = get_logger(__name__)

_PARENT_KEYS = ("parent_id", "parentId", "parent")
_TITLE_KEYS = ("section_title", "sectionTitle")


@dataclass(frozen=True, slots=True)
class Limits:
    """Size policy enforced at the request boundary."""

    max_question_chars: int = 1000
    max_candidates: int = 60
    max_id_chars: int = 100
    max_title_chars: int = 300
    max_text_chars: int = 5000
    max_embed_texts: int = 500
    top_n: int = 25


def validate_question(value: Any, limits: Limits = Limits()) -> str:
    """Return the question stripped and capped at `limits.max_question_chars`.

    Raises:
        ValidationError: If the question is missing, not a string, or blank.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Missing question")
    return value.strip()[: limits.max_question_chars]


def _first_string(record: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _identifier(record: Mapping[str, Any]) -> str | None:
    value = record.get("id")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _default_parent(passage_id: str) -> str:
    head, sep, _ = passage_id.rpartition(".")
    return head if sep and head else passage_id


def _to_passage(record: Any, limits: Limits) -> Passage | None:
    if not isinstance(record, Mapping):
        return None
    passage_id = _identifier(record)
    text = _first_string(record, ("text",))
    if passage_id is None or text is None:
        return None

    passage_id = passage_id[: limits.max_id_chars]
    title = (_first_string(record, _TITLE_KEYS) or "")[: limits.max_title_chars]
    parent = _first_string(record, _PARENT_KEYS) or _default_parent(passage_id)
    return Passage(
        id=passage_id,
        parent_id=parent[: limits.max_id_chars],
        section_title=title,
        text=text[: limits.max_text_chars],
    )


def validate_candidates(value: Any, limits: Limits = Limits()) -> list[Passage]:
    """Convert raw passage-like records into capped `Passage` objects.

    Records without a usable `id` or `text` are dropped. Numeric ids become
    strings; ids are otherwise kept exactly as given. The array as a whole
    is rejected, never truncated, when it holds more than `limits.max_candidates`
    entries.

    Args:
        value: Caller-supplied candidate array.
        limits: Size policy to enforce.

    Returns:
        Valid passages in their original order.

    Raises:
        ValidationError: If the value is not a list, is too long, or has no
            valid records.
    """
    if not isinstance(value, list) or not value:
        raise ValidationError("Missing candidates")
    if len(value) > limits.max_candidates:
        raise ValidationError(
            f"Too many candidates: {len(value)} exceeds the limit of {limits.max_candidates}"
        )

    passages: list[Passage] = []
    for position, record in enumerate(value):
        passage = _to_passage(record, limits)
        if passage is None:
            log.debug("Dropping candidate %d: missing id or text", position)
            continue
        passages.append(passage)

    if not passages:
        raise ValidationError("No valid candidates after validation")
    return passages


def validate_ask_request(payload: Any, limits: Limits = Limits()) -> tuple[str, list[Passage]]:
    """Validate a `{question, candidates}` request body."""
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    question = validate_question(payload.get("question"), limits)
    passages = validate_candidates(payload.get("candidates"), limits)
    return question, passages


def validate_texts(value: Any, limits: Limits = Limits()) -> list[str]:
    """Validate a raw `texts` array for the embedding endpoint.

    Each entry must be a string and is capped at `limits.max_text_chars`.

    Raises:
        ValidationError: If the value is not a non-empty list of strings or
            holds more than `limits.max_embed_texts` entries.
    """
    if not isinstance(value, list) or not value:
        raise ValidationError("Missing 'texts' array")
    if len(value) > limits.max_embed_texts:
        raise ValidationError(
            f"Too many texts: {len(value)} exceeds the limit of {limits.max_embed_texts}"
        )
    if not all(isinstance(text, str) for text in value):
        raise ValidationError("Every entry in 'texts' must be a string")
    return [text[: limits.max_text_chars] for text in value]
