from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .guard import Limits


@dataclass(slots=True)
class OpenAISettings:
    """Runtime model configuration for embedding and generation calls."""

    embedding_model: str = "text-embedding-3-small"
    chat_model: str = "gpt-4.1-mini"
    embedding_dimensions: int = 384
    timeout_seconds: float = 30.0


@dataclass(slots=True)
class RetrievalSettings:
    """Lexical shortlist and semantic reranking knobs."""

    embedding_backend: str = "openai"
    local_embedding_model: str = "BAAI/bge-small-en-v1.5"
    embedding_batch_size: int = 100
    candidate_limit: int = 50
    lexicon_path: str | None = None


@dataclass(slots=True)
class ServiceSettings:
    """HTTP service configuration: corpus location, CORS and admission control."""

    corpus_path: str = "data/ocp_chunks.json"
    allowed_origin: str = "*"
    rate_limit_requests: int = 20
    rate_limit_window_seconds: float = 60.0


@dataclass(slots=True)
class Settings:
    openai: OpenAISettings
    retrieval: RetrievalSettings
    limits: Limits
    service: ServiceSettings


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, default))
    except (TypeError, ValueError):
        return default


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, default))
    except (TypeError, ValueError):
        return default


def load_settings() -> Settings:
    """Load environment-backed settings and return typed config objects.

    Values come from the process environment, after a `.env` file (if present)
    has been merged in. Malformed numeric values fall back to their defaults.

    Returns:
        A `Settings` bundle with model, retrieval, limit and service settings.
    """
    load_dotenv()
    defaults = Limits()
    return Settings(
        openai=OpenAISettings(
            embedding_model=os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small"),
            chat_model=os.getenv("OPENAI_CHAT_MODEL", "gpt-4.1-mini"),
            embedding_dimensions=_env_int("OCP_EMBEDDING_DIM", 384),
            timeout_seconds=_env_float("OPENAI_TIMEOUT_SECONDS", 30.0),
        ),
        retrieval=RetrievalSettings(
            embedding_backend=os.getenv("OCP_EMBEDDING_BACKEND", "openai").strip().lower(),
            local_embedding_model=os.getenv("OCP_LOCAL_EMBEDDING_MODEL", "BAAI/bge-small-en-v1.5"),
            embedding_batch_size=_env_int("OCP_EMBEDDING_BATCH_SIZE", 100),
            candidate_limit=_env_int("OCP_CANDIDATE_LIMIT", 50),
            lexicon_path=os.getenv("OCP_LEXICON_PATH") or None,
        ),
        limits=Limits(
            max_question_chars=_env_int("OCP_MAX_QUESTION_CHARS", defaults.max_question_chars),
            max_candidates=_env_int("OCP_MAX_CANDIDATES", defaults.max_candidates),
            max_id_chars=_env_int("OCP_MAX_ID_CHARS", defaults.max_id_chars),
            max_title_chars=_env_int("OCP_MAX_TITLE_CHARS", defaults.max_title_chars),
            max_text_chars=_env_int("OCP_MAX_TEXT_CHARS", defaults.max_text_chars),
            max_embed_texts=_env_int("OCP_MAX_EMBED_TEXTS", defaults.max_embed_texts),
            top_n=_env_int("OCP_TOP_N", defaults.top_n),
        ),
        service=ServiceSettings(
            corpus_path=os.getenv("OCP_CORPUS_PATH", "data/ocp_chunks.json"),
            allowed_origin=os.getenv("ALLOWED_ORIGIN", "*"),
            rate_limit_requests=_env_int("OCP_RATE_LIMIT_REQUESTS", 20),
            rate_limit_window_seconds=_env_float("OCP_RATE_LIMIT_WINDOW_SECONDS", 60.0),
        ),
    )
