from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache

from rank_bm25 import BM25Plus

from .corpus import Corpus
from .normalization import DEFAULT_LEXICON, Lexicon, expand_token, extract_terms, tokenize
from .schema import ScoredCandidate

K1 = 1.5
B = 0.75


@dataclass(slots=True)
class LexicalIndex:
    """Per-passage term frequencies and corpus-wide IDF for one corpus."""

    corpus: Corpus
    lexicon: Lexicon
    term_freqs: list[dict[str, float]]
    doc_lens: list[int]
    avgdl: float
    idf: dict[str, float]


def _passage_term_freqs(text: str, lexicon: Lexicon, memo: dict[str, dict[str, float]]) -> tuple[dict[str, float], int]:
    freqs: dict[str, float] = {}
    tokens = tokenize(text, lexicon)
    for token in tokens:
        expanded = memo.get(token)
        if expanded is None:
            expanded = memo[token] = expand_token(token, lexicon)
        for term, weight in expanded.items():
            freqs[term] = freqs.get(term, 0.0) + weight
    return freqs, len(tokens)


def build_lexical_index(corpus: Corpus, lexicon: Lexicon = DEFAULT_LEXICON) -> LexicalIndex:
    """Extract and expand every passage's terms once and compute IDF weights.

    Document frequencies come from BM25Plus, whose IDF `log((N + 1) / df)` stays
    positive even for terms present in every passage.

    Args:
        corpus: Passages to index.
        lexicon: Stopwords and synonyms used for both passages and queries.

    Returns:
        Index reusable across queries for this corpus and lexicon.
    """
    memo: dict[str, dict[str, float]] = {}
    term_freqs: list[dict[str, float]] = []
    doc_lens: list[int] = []
    for passage in corpus:
        freqs, length = _passage_term_freqs(passage.text, lexicon, memo)
        term_freqs.append(freqs)
        doc_lens.append(length)

    idf: dict[str, float] = {}
    if term_freqs:
        idf = dict(BM25Plus([list(freqs) for freqs in term_freqs], k1=K1, b=B).idf)
    avgdl = sum(doc_lens) / len(doc_lens) if doc_lens else 0.0
    return LexicalIndex(
        corpus=corpus,
        lexicon=lexicon,
        term_freqs=term_freqs,
        doc_lens=doc_lens,
        avgdl=avgdl or 1.0,
        idf=idf,
    )


@lru_cache(maxsize=8)
def _cached_index(corpus: Corpus, lexicon: Lexicon) -> LexicalIndex:
    return build_lexical_index(corpus, lexicon)


def score_chunks(
    query_terms: Mapping[str, float],
    corpus: Corpus | LexicalIndex,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> list[ScoredCandidate]:
    """Score every passage against weighted query terms.

    Each matching term contributes `query weight x idf x saturated tf`, with
    the BM25 length normalization. Passages with no matching term are left out.

    Args:
        query_terms: Weighted term set, usually from `extract_terms`.
        corpus: Corpus to score, or a prebuilt index for it.
        lexicon: Lexicon used when an index has to be built.

    Returns:
        Candidates sorted by score descending, ties by passage id as a string.
    """
    index = corpus if isinstance(corpus, LexicalIndex) else _cached_index(corpus, lexicon)
    if not query_terms:
        return []

    results: list[ScoredCandidate] = []
    for passage, freqs, length in zip(index.corpus, index.term_freqs, index.doc_lens, strict=True):
        norm = K1 * (1.0 - B + B * length / index.avgdl)
        score = 0.0
        for term, query_weight in query_terms.items():
            tf = freqs.get(term)
            if not tf:
                continue
            score += query_weight * index.idf.get(term, 0.0) * tf * (K1 + 1.0) / (tf + norm)
        if score > 0.0:
            results.append(ScoredCandidate(passage=passage, score=score))

    return sort_candidates(results)


def sort_candidates(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Order by score descending; identifiers are compared only as strings."""
    return sorted(candidates, key=lambda candidate: (-candidate.score, candidate.passage.id))


def _dedupe_key(text: str) -> str:
    return " ".join(text.lower().split())


def dedupe_candidates(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Keep the first (best) candidate for each passage id and each body text."""
    seen_ids: set[str] = set()
    seen_texts: set[str] = set()
    unique: list[ScoredCandidate] = []
    for candidate in candidates:
        text_key = _dedupe_key(candidate.passage.text)
        if candidate.passage.id in seen_ids or text_key in seen_texts:
            continue
        seen_ids.add(candidate.passage.id)
        seen_texts.add(text_key)
        unique.append(candidate)
    return unique


def search_corpus(
    question: str,
    corpus: Corpus,
    limit: int = 50,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> list[ScoredCandidate]:
    """Run the lexical path for a question: normalize, score, dedupe, cut.

    Args:
        question: Free-text question.
        corpus: Passages to search.
        limit: Maximum number of candidates to return.
        lexicon: Stopwords and synonyms for normalization.

    Returns:
        Up to `limit` unique candidates, best first.
    """
    terms = extract_terms(question, lexicon)
    ranked = score_chunks(terms, corpus, lexicon)
    return dedupe_candidates(ranked)[:limit]
