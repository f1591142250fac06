from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from pathlib import Path

from .schema import Passage


class Corpus:
    """Ordered, read-only collection of plan passages.

    Built once at startup and shared by every request. Passages keep their
    source order, which the lexical path relies on for stable output.
    """

    def __init__(self, passages: Iterable[Passage]):
        self._passages: tuple[Passage, ...] = tuple(passages)
        self._by_id: dict[str, Passage] = {}
        self._section_titles: dict[str, str] = {}
        for passage in self._passages:
            self._by_id.setdefault(passage.id, passage)
            if passage.parent_id not in self._section_titles:
                self._section_titles[passage.parent_id] = passage.section_title

    def __len__(self) -> int:
        return len(self._passages)

    def __iter__(self) -> Iterator[Passage]:
        return iter(self._passages)

    def __getitem__(self, index: int) -> Passage:
        return self._passages[index]

    @property
    def passages(self) -> tuple[Passage, ...]:
        return self._passages

    @property
    def section_titles(self) -> dict[str, str]:
        """Parent section id to section title; the first passage seen wins."""
        return dict(self._section_titles)

    def get(self, passage_id: str) -> Passage | None:
        return self._by_id.get(passage_id)


def _record_to_passage(record: dict) -> Passage:
    parent = record.get("parent_id", record.get("parentId", record.get("parent", "")))
    title = record.get("section_title", record.get("sectionTitle", ""))
    return Passage(
        id=str(record["id"]),
        parent_id=str(parent),
        section_title=str(title),
        text=str(record["text"]),
    )


def _load_records(path: Path) -> list[dict]:
    raw = path.read_text(encoding="utf-8")
    if path.suffix == ".jsonl":
        return [json.loads(line) for line in raw.splitlines() if line.strip()]
    data = json.loads(raw)
    if isinstance(data, dict):
        data = data.get("chunks", [])
    return list(data)


def load_corpus(path: str | Path = "data/ocp_chunks.json") -> Corpus:
    """Load plan passages from a chunk export.

    Accepts the chunk export format, a JSON array of
    `{id, parent, sectionTitle, text}` records (an object with a `chunks`
    array also works), or JSONL with one record per line.

    Args:
        path: Location of the `.json` or `.jsonl` export.

    Returns:
        Corpus preserving file order.
    """
    return Corpus(_record_to_passage(record) for record in _load_records(Path(path)))

