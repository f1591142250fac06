from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from opentelemetry import trace

from .corpus import Corpus
from .grouping import group_by_section
from .guard import Limits, validate_ask_request, validate_question
from .logging_config import get_logger
from .normalization import DEFAULT_LEXICON, Lexicon
from .qa import answer_with_context
from .reranking import SemanticReranker
from .retrieval import search_corpus
from .schema import AskResult, Passage, RerankedCandidate, ResultGroup, ScoredCandidate
from .tracing import get_tracer, traced_generation, traced_rerank, traced_search

log = get_logger(__name__)


@dataclass(slots=True)
class SearchResponse:
    """Lexical shortlist for one question, flat and grouped by section."""

    question: str
    candidates: list[ScoredCandidate]
    groups: list[ResultGroup]


def search(
    question: Any,
    corpus: Corpus,
    limit: int = 50,
    lexicon: Lexicon = DEFAULT_LEXICON,
    limits: Limits = Limits(),
    tracer: trace.Tracer | None = None,
) -> SearchResponse:
    """Client-facing path: validate the question, rank the corpus, group by section.

    Args:
        question: Raw question text from the caller.
        corpus: Passages to search.
        limit: Maximum number of candidates in the shortlist.
        lexicon: Stopwords and synonyms for normalization.
        limits: Boundary size policy.
        tracer: Tracer for the ``search`` span; defaults to this module's tracer.

    Returns:
        The shortlist and its section groups.
    """
    cleaned = validate_question(question, limits)
    run_search = traced_search(search_corpus, tracer or get_tracer(__name__))
    candidates = run_search(cleaned, corpus, limit=limit, lexicon=lexicon)
    groups = group_by_section(candidates, corpus.section_titles)
    log.info("Search returned %d candidates in %d sections", len(candidates), len(groups))
    return SearchResponse(question=cleaned, candidates=candidates, groups=groups)


class AskPipeline:
    """Server-facing path: validate, rerank, keep the top N, generate an answer."""

    def __init__(
        self,
        reranker: SemanticReranker,
        answer_fn: Callable[..., str] = answer_with_context,
        limits: Limits = Limits(),
        model: str = "gpt-4.1-mini",
        tracer: trace.Tracer | None = None,
    ):
        tracer = tracer or get_tracer(__name__)
        self.reranker = reranker
        self.limits = limits
        self.model = model
        self._rerank = traced_rerank(reranker.rerank, tracer)
        self._generate = traced_generation(answer_fn, tracer, model_name=model)

    def select_passages(self, question: str, passages: list[Passage]) -> tuple[list[RerankedCandidate], bool]:
        """Rerank candidates and cut to `limits.top_n`, whichever order was produced.

        Returns:
            The kept candidates and whether semantic reranking produced the order.
        """
        ranked = self._rerank(question, passages)
        used_semantic = bool(ranked) and ranked[0].similarity is not None
        return ranked[: self.limits.top_n], used_semantic

    def ask(self, payload: Any) -> AskResult:
        """Answer a `{question, candidates}` request.

        Raises:
            ValidationError: If the request fails boundary validation.
            GenerationError: If the text-generation service fails.
        """
        question, passages = validate_ask_request(payload, self.limits)
        best, used_semantic = self.select_passages(question, passages)
        answer = self._generate(question, [candidate.passage for candidate in best], model=self.model)
        log.info(
            "Answered question with %d passages (semantic reranking: %s)",
            len(best),
            used_semantic,
        )
        return AskResult(answer=answer, passages=best, used_semantic_reranking=used_semantic)
