from __future__ import annotations

import os
from functools import lru_cache

import numpy as np
from openai import OpenAI

from .errors import EmbeddingError
from .logging_config import get_logger
from .settings import Settings

log = get_logger(__name__)

EMBEDDING_DIM = 384
BATCH_SIZE = 100
SIMILARITY_EPSILON = 1e-8


@lru_cache(maxsize=2)
def _load_sentence_transformer(model_name: str):
    try:
        from sentence_transformers import SentenceTransformer
    except ImportError as exc:
        raise RuntimeError(
            "sentence-transformers is not installed; install the 'local' extra"
        ) from exc
    return SentenceTransformer(model_name)


class EmbeddingClient:
    """Batched access to an embedding collaborator.

    Texts are sent in fixed-size slices, one request after another, and the
    resulting rows are stacked back in input order. A failed or malformed batch
    fails the whole call.
    """

    def __init__(
        self,
        backend: str = "openai",
        model: str = "text-embedding-3-small",
        dimensions: int = EMBEDDING_DIM,
        batch_size: int = BATCH_SIZE,
        timeout: float | None = None,
    ):
        """Configure the backend used for embedding calls.

        Args:
            backend: `openai` or `sentence-transformers`.
            model: Embedding model name for the chosen backend.
            dimensions: Expected vector length; also requested from OpenAI.
            batch_size: Maximum number of texts per collaborator request.
            timeout: Request timeout in seconds for the OpenAI client.
        """
        if backend not in {"openai", "sentence-transformers"}:
            raise ValueError(f"Unsupported embedding backend: {backend}")
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.backend = backend
        self.model = model
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.timeout = timeout
        self._client: OpenAI | None = None

    def _openai_batch(self, batch: list[str]) -> list[list[float]]:
        if self._client is None:
            self._client = OpenAI(timeout=self.timeout) if self.timeout else OpenAI()
        response = self._client.embeddings.create(model=self.model, input=batch, dimensions=self.dimensions)
        return [row.embedding for row in response.data]

    def _local_batch(self, batch: list[str]):
        model = _load_sentence_transformer(self.model)
        return model.encode(batch, normalize_embeddings=True)

    def _embed_batch(self, batch: list[str]):
        if self.backend == "openai":
            return self._openai_batch(batch)
        return self._local_batch(batch)

    def _check_batch(self, vectors, expected_rows: int) -> np.ndarray:
        try:
            matrix = np.asarray(vectors, dtype=np.float32)
        except (TypeError, ValueError) as exc:
            raise EmbeddingError(f"Embedding response is not numeric: {exc}") from exc
        if matrix.ndim != 2 or matrix.shape != (expected_rows, self.dimensions):
            raise EmbeddingError(
                f"Embedding response has shape {matrix.shape}, expected ({expected_rows}, {self.dimensions})"
            )
        if not np.all(np.isfinite(matrix)):
            raise EmbeddingError("Embedding response contains non-finite values")
        return matrix

    def embed(self, texts: list[str]) -> np.ndarray:
        """Embed texts, returning a `float32` matrix aligned with the input.

        Args:
            texts: Strings to embed, in the order their vectors are wanted.

        Returns:
            Matrix shaped `(len(texts), dimensions)`.

        Raises:
            EmbeddingError: If any batch fails or comes back malformed.
        """
        if not texts:
            return np.zeros((0, self.dimensions), dtype=np.float32)

        rows: list[np.ndarray] = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            try:
                vectors = self._embed_batch(batch)
            except Exception as exc:
                raise EmbeddingError(
                    f"Embedding batch starting at {start} failed: {exc}"
                ) from exc
            rows.append(self._check_batch(vectors, len(batch)))
        log.debug("Embedded %d texts in %d batch(es)", len(texts), len(rows))
        return np.vstack(rows)


def embed_texts(
    texts: list[str],
    model: str = "text-embedding-3-small",
    dimensions: int = EMBEDDING_DIM,
    batch_size: int = BATCH_SIZE,
) -> np.ndarray:
    """Generate embedding vectors for input texts using OpenAI embeddings API.

    Args:
        texts: Input strings to embed.
        model: Embedding model name.
        dimensions: Vector length to request.
        batch_size: Texts per API request.

    Returns:
        A `float32` NumPy matrix shaped `(len(texts), dimensions)`.
    """
    client = EmbeddingClient("openai", model=model, dimensions=dimensions, batch_size=batch_size)
    return client.embed(texts)


def cosine_similarity(query_vector: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Compute cosine similarity between one query vector and many vectors.

    The denominator carries a small additive epsilon so all-zero vectors score
    0 instead of dividing by zero. Results are clipped to [-1, 1] to absorb
    float32 rounding.

    Args:
        query_vector: Query embedding vector.
        matrix: Candidate embedding matrix where each row is one vector.

    Returns:
        A 1D array of cosine similarity scores aligned to matrix rows.
    """
    query_norm = np.linalg.norm(query_vector)
    matrix_norm = np.linalg.norm(matrix, axis=1)
    similarities = (matrix @ query_vector) / (query_norm * matrix_norm + SIMILARITY_EPSILON)
    return np.clip(similarities, -1.0, 1.0)


def build_embedding_client(settings: Settings) -> EmbeddingClient | None:
    """Return the configured embedding client, or None when embeddings are off.

    The OpenAI backend counts as configured only when `OPENAI_API_KEY` is set.
    """
    backend = settings.retrieval.embedding_backend
    if backend in {"", "none", "off"}:
        return None
    if backend == "openai":
        if not os.getenv("OPENAI_API_KEY"):
            log.warning("OPENAI_API_KEY is not set; semantic reranking disabled")
            return None
        return EmbeddingClient(
            "openai",
            model=settings.openai.embedding_model,
            dimensions=settings.openai.embedding_dimensions,
            batch_size=settings.retrieval.embedding_batch_size,
            timeout=settings.openai.timeout_seconds,
        )
    return EmbeddingClient(
        backend,
        model=settings.retrieval.local_embedding_model,
        dimensions=settings.openai.embedding_dimensions,
        batch_size=settings.retrieval.embedding_batch_size,
    )
