"""FastAPI service for community-plan questions.

Endpoints:
    POST /ask     { "question": str, "candidates": [...] } -> answer + reranked ids
    POST /search  { "question": str, "limit": int }         -> lexical shortlist by section
    POST /embed   { "texts": [str] }                         -> embedding vectors
    GET  /health

The corpus is loaded once at startup and held in memory for the lifetime of
the process.

Run with:
    uvicorn ocp_search.api:app --host 0.0.0.0 --port 8000
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .corpus import Corpus, load_corpus
from .embeddings import EmbeddingClient, build_embedding_client
from .errors import EmbeddingError, GenerationError, ValidationError
from .guard import validate_texts
from .logging_config import configure_logging, get_logger
from .normalization import DEFAULT_LEXICON, Lexicon, load_lexicon
from .pipeline import AskPipeline, search
from .qa import answer_with_context
from .ratelimit import AllowAllRateLimiter, InMemoryRateLimiter, RateLimiter
from .reranking import SemanticReranker
from .settings import Settings, load_settings

log = get_logger(__name__)


class AskRequest(BaseModel):
    """Input schema for /ask; field contents are checked by the boundary guard."""

    question: Any = None
    candidates: Any = None


class SearchRequest(BaseModel):
    question: Any = None
    limit: int | None = None


class EmbedRequest(BaseModel):
    texts: Any = None


def _build_rate_limiter(settings: Settings) -> RateLimiter:
    if settings.service.rate_limit_requests <= 0:
        return AllowAllRateLimiter()
    return InMemoryRateLimiter(
        max_requests=settings.service.rate_limit_requests,
        window_seconds=settings.service.rate_limit_window_seconds,
    )


def create_app(
    settings: Settings | None = None,
    corpus: Corpus | None = None,
    embedding_client: EmbeddingClient | None = None,
    answer_fn: Callable[..., str] = answer_with_context,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Build the service.

    Collaborators can be injected for tests or alternative deployments; anything
    left as None is built from settings. When no corpus is given it is loaded
    from `settings.service.corpus_path` at startup.
    """
    settings = settings or load_settings()
    lexicon: Lexicon = (
        load_lexicon(settings.retrieval.lexicon_path) if settings.retrieval.lexicon_path else DEFAULT_LEXICON
    )
    if embedding_client is None:
        embedding_client = build_embedding_client(settings)
    limiter = rate_limiter or _build_rate_limiter(settings)
    pipeline = AskPipeline(
        reranker=SemanticReranker(embedding_client),
        answer_fn=answer_fn,
        limits=settings.limits,
        model=settings.openai.chat_model,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        if app.state.corpus is None:
            log.info("Service startup - loading corpus from %s", settings.service.corpus_path)
            try:
                app.state.corpus = load_corpus(settings.service.corpus_path)
            except FileNotFoundError as exc:
                raise RuntimeError(f"[startup] Corpus file not found: {exc}") from exc
        log.info(
            "Corpus ready - %d passages in %d sections; semantic reranking %s",
            len(app.state.corpus),
            len(app.state.corpus.section_titles),
            "enabled" if pipeline.reranker.is_configured else "disabled",
        )
        yield
        log.info("Service shutdown")

    app = FastAPI(
        title="OCP Policy Search",
        description="Question answering over Official Community Plan policies.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.corpus = corpus
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.service.allowed_origin],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=86400,
    )

    def admit(request: Request) -> None:
        key = request.client.host if request.client else "unknown"
        if not limiter.check_and_record(key):
            log.warning("Rate limit exceeded for %s", key)
            raise HTTPException(status_code=429, detail="Too many requests")

    @app.get("/health", tags=["ops"])
    def health_check():
        """Liveness probe; does not call any collaborator."""
        corpus_loaded = app.state.corpus
        return {
            "status": "ok",
            "passages_loaded": len(corpus_loaded) if corpus_loaded is not None else 0,
            "semantic_reranking": pipeline.reranker.is_configured,
            "generation_model": settings.openai.chat_model,
        }

    @app.post("/ask", tags=["rag"], dependencies=[Depends(admit)])
    def ask(request: AskRequest):
        """Rerank the caller's candidates, keep the top N, and generate an answer.

        Raises:
            400 Bad Request: missing question or no valid candidates
            503 Service Unavailable: the generation service failed
        """
        try:
            result = pipeline.ask(request.model_dump())
        except ValidationError as exc:
            log.info("POST /ask rejected: %s", exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except GenerationError as exc:
            log.error("POST /ask failed - generation unavailable: %s", exc)
            raise HTTPException(status_code=503, detail="AI service error") from exc
        return {
            "answer": result.answer,
            "rerankedIds": result.reranked_ids,
            "usedSemanticReranking": result.used_semantic_reranking,
        }

    @app.post("/search", tags=["rag"], dependencies=[Depends(admit)])
    def search_passages(request: SearchRequest):
        """Lexical shortlist from the loaded corpus, grouped by section."""
        limit = request.limit or settings.retrieval.candidate_limit
        limit = max(1, min(limit, settings.limits.max_candidates))
        try:
            response = search(request.question, app.state.corpus, limit=limit, lexicon=lexicon, limits=settings.limits)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "question": response.question,
            "candidates": [
                {
                    "id": candidate.passage.id,
                    "parent": candidate.passage.parent_id,
                    "sectionTitle": candidate.passage.section_title,
                    "text": candidate.passage.text,
                    "score": candidate.score,
                }
                for candidate in response.candidates
            ],
            "groups": [
                {
                    "sectionId": group.section_id,
                    "sectionTitle": group.section_title,
                    "ids": [member.passage.id for member in group.members],
                }
                for group in response.groups
            ],
        }

    @app.post("/embed", tags=["rag"], dependencies=[Depends(admit)])
    def embed(request: EmbedRequest):
        """Embed caller texts with the configured embedding backend."""
        try:
            texts = validate_texts(request.texts, settings.limits)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if embedding_client is None:
            raise HTTPException(status_code=503, detail="Embeddings not configured")
        try:
            vectors = embedding_client.embed(texts)
        except EmbeddingError as exc:
            log.error("POST /embed failed: %s", exc)
            raise HTTPException(status_code=500, detail="Embedding failed") from exc
        return {"embeddings": vectors.tolist()}

    return app


app = create_app()
