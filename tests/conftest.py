"""Shared pytest fixtures for ocp_search unit tests."""
from __future__ import annotations

import numpy as np
import pytest

from ocp_search.corpus import Corpus
from ocp_search.errors import EmbeddingError
from ocp_search.schema import Passage, ScoredCandidate


def make_passage(passage_id: str, text: str, parent: str = "S", title: str = "Section") -> Passage:
    return Passage(id=passage_id, parent_id=parent, section_title=title, text=text)


class FakeEmbeddingClient:
    """Returns preset vectors per text; unknown texts get a zero vector."""

    def __init__(self, vectors: dict[str, np.ndarray], dim: int = 4):
        self.vectors = vectors
        self.dim = dim
        self.calls: list[list[str]] = []

    def embed(self, texts: list[str]) -> np.ndarray:
        self.calls.append(list(texts))
        rows = [self.vectors.get(text, np.zeros(self.dim)) for text in texts]
        return np.array(rows, dtype=np.float32).reshape(len(texts), self.dim)


class FailingEmbeddingClient:
    def __init__(self, exc: Exception | None = None):
        self.exc = exc or EmbeddingError("embedding service unavailable")
        self.calls = 0

    def embed(self, texts: list[str]) -> np.ndarray:
        self.calls += 1
        raise self.exc


@pytest.fixture()
def sample_passages() -> list[Passage]:
    return [
        make_passage(
            "A.1.1",
            "Secondary suites may be permitted on residential lots.",
            parent="A.1",
            title="Residential Housing",
        ),
        make_passage(
            "A.1.2",
            "Heliport landing areas are not permitted.",
            parent="A.1",
            title="Residential Housing",
        ),
        make_passage(
            "B.4.1",
            "Groundwater supplies must be protected from contamination.",
            parent="B.4",
            title="Water Protection",
        ),
    ]


@pytest.fixture()
def sample_corpus(sample_passages) -> Corpus:
    return Corpus(sample_passages)


@pytest.fixture()
def sample_candidates(sample_passages) -> list[ScoredCandidate]:
    return [
        ScoredCandidate(passage=sample_passages[2], score=3.0),
        ScoredCandidate(passage=sample_passages[0], score=2.0),
        ScoredCandidate(passage=sample_passages[1], score=1.0),
    ]


@pytest.fixture()
def candidate_records() -> list[dict]:
    return [
        {"id": "B.2.2.2.15", "sectionTitle": "Affordable Housing", "text": "Affordable housing agreements."},
        {"id": "C.2.2.2.2", "sectionTitle": "Water Protection", "text": "Potable water supply must be shown."},
        {"id": "D.9.def.sign", "sectionTitle": "Definitions", "text": "Sign means any display."},
    ]
