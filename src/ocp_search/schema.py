from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Passage:
    """One identifiable excerpt of the community plan, owned by the corpus."""

    id: str
    parent_id: str
    section_title: str
    text: str


@dataclass(slots=True)
class ScoredCandidate:
    """Passage paired with its lexical relevance score for one query."""

    passage: Passage
    score: float


@dataclass(slots=True)
class ResultGroup:
    """Section-level bundle of scored candidates, ordered for display."""

    section_id: str
    section_title: str
    members: list[ScoredCandidate]

    @property
    def best_score(self) -> float:
        return max((member.score for member in self.members), default=0.0)


@dataclass(slots=True)
class RerankedCandidate:
    """Passage with its query similarity; `similarity` is None on lexical fallback."""

    passage: Passage
    similarity: float | None


@dataclass(slots=True)
class AskResult:
    """Answer text plus the passages that were handed to the generator."""

    answer: str
    passages: list[RerankedCandidate]
    used_semantic_reranking: bool

    @property
    def reranked_ids(self) -> list[str]:
        return [candidate.passage.id for candidate in self.passages]
