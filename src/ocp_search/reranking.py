from __future__ import annotations

from .embeddings import EmbeddingClient, cosine_similarity
from .logging_config import get_logger
from .schema import Passage, RerankedCandidate

log = get_logger(__name__)


class SemanticReranker:
    """Second-stage reranker ordering lexical candidates by embedding similarity."""

    def __init__(self, client: EmbeddingClient | None = None):
        """Initialize the reranker.

        Args:
            client: Embedding client to use. `None` means embeddings are not
                available in this deployment and every call falls back.
        """
        self.client = client

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _score(self, query: str, passages: list[Passage]) -> list[RerankedCandidate]:
        vectors = self.client.embed([query, *[passage.text for passage in passages]])
        similarities = cosine_similarity(vectors[0], vectors[1:])
        ranked = [
            RerankedCandidate(passage=passage, similarity=float(similarity))
            for passage, similarity in zip(passages, similarities, strict=True)
        ]
        # sorted() is stable, so equal similarities keep their lexical order.
        return sorted(ranked, key=lambda candidate: candidate.similarity, reverse=True)

    def rerank(self, query: str, passages: list[Passage]) -> list[RerankedCandidate]:
        """Reorder candidates by cosine similarity between query and passage vectors.

        The query and all candidate texts go out in one batched embedding call,
        query first. When the client is missing or embedding fails for any
        reason, candidates come back in their original order with
        `similarity=None`.

        Args:
            query: User question.
            passages: Lexically ranked candidates.

        Returns:
            Candidates sorted by similarity descending, or in input order on fallback.
        """
        if not passages:
            return []
        if self.client is None:
            return _fallback(passages)
        try:
            return self._score(query, passages)
        except Exception as exc:
            log.warning("Reranking failed, falling back to lexical order: %s", exc)
            return _fallback(passages)


def _fallback(passages: list[Passage]) -> list[RerankedCandidate]:
    return [RerankedCandidate(passage=passage, similarity=None) for passage in passages]
