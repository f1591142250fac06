"""Lexical normalization: tokens, plural/singular variants and synonym expansion.

A term set is a mapping of normalized term to weight. Tokens taken directly from
the text weigh 1.0; generated variants and synonyms weigh less so that exact
wording still outranks a looser match. When a term is produced more than once
the largest weight wins.
"""
from __future__ import annotations

import json
import re
import unicodedata
from collections.abc import Iterable, Mapping
from pathlib import Path

from .logging_config import get_logger

log = get_logger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+(?:[.\-][a-z0-9]+)*")
_APOSTROPHES = str.maketrans("", "", "'’")
_SIBILANT_ENDINGS = ("s", "x", "z", "ch", "sh")
_VOWELS = set("aeiou")

DEFAULT_STOPWORDS = frozenset(
    """
    a about above after again against all also am an and any are as at be because been
    before being below between both but by can could did do does doing down during each
    few for from further had has have having he her here hers herself him himself his how
    i if in into is it its itself just me more most my myself no nor not now of off on
    once only or other our ours ourselves out over own same she should so some such than
    that the their theirs them themselves then there these they this those through to too
    under until up very was we were what when where which while who whom why will with
    would you your yours yourself yourselves

    allowed anyone does island let lets ok please say says tell thing things want
    """.split()
)

DEFAULT_SYNONYMS: dict[str, tuple[str, ...]] = {
    "adu": ("cottage", "suite", "secondary", "accessory"),
    "str": ("vacation", "short-term", "bnb", "airbnb"),
    "water": ("aquifer", "groundwater", "wells", "potable"),
    "housing": ("dwelling", "residential", "home", "residence"),
    "affordable": ("attainable", "subsidized"),
    "business": ("commercial", "enterprise"),
    "farm": ("agricultural", "agriculture", "farming", "alr"),
    "forest": ("woodland", "trees", "timber"),
    "shoreline": ("foreshore", "waterfront", "coastal", "beach"),
    "subdivision": ("subdivide", "lot", "parcel"),
    "environment": ("ecological", "habitat", "ecosystem"),
    "climate": ("emissions", "ghg", "carbon"),
    "transport": ("transportation", "traffic", "road", "transit"),
    "density": ("intensity",),
    "zoning": ("zone", "bylaw", "rezoning"),
    "heritage": ("historic", "historical"),
    "park": ("parks", "recreation", "trail"),
    "sign": ("signage", "billboard"),
}


class Lexicon:
    """Stopword list and synonym table used for normalization.

    Synonym groups are closed transitively on construction: if `a` relates to
    `b` and `b` to `c`, all three share one group. Entries containing whitespace
    are skipped since matching works on single tokens.
    """

    def __init__(
        self,
        stopwords: Iterable[str] = DEFAULT_STOPWORDS,
        synonyms: Mapping[str, Iterable[str]] | None = None,
        variant_weight: float = 0.8,
        synonym_weight: float = 0.6,
    ):
        if not 0.0 < variant_weight <= 1.0 or not 0.0 < synonym_weight <= 1.0:
            raise ValueError("variant_weight and synonym_weight must be in (0, 1]")
        self.stopwords = frozenset(word.strip().lower() for word in stopwords)
        self.variant_weight = variant_weight
        self.synonym_weight = synonym_weight
        self._groups = _close_synonym_groups(DEFAULT_SYNONYMS if synonyms is None else synonyms)

    def synonyms_for(self, term: str) -> frozenset[str]:
        group = self._groups.get(term)
        if group is None:
            return frozenset()
        return group - {term}


def _clean_entry(entry: str) -> str | None:
    cleaned = entry.strip().lower()
    if not cleaned or any(char.isspace() for char in cleaned):
        log.debug("Skipping synonym entry %r: not a single term", entry)
        return None
    return cleaned


def _close_synonym_groups(synonyms: Mapping[str, Iterable[str]]) -> dict[str, frozenset[str]]:
    # Union-find over every term mentioned in the table.
    parent: dict[str, str] = {}

    def find(term: str) -> str:
        parent.setdefault(term, term)
        while parent[term] != term:
            parent[term] = parent[parent[term]]
            term = parent[term]
        return term

    for canonical, related in synonyms.items():
        head = _clean_entry(canonical)
        if head is None:
            continue
        find(head)
        for entry in related:
            cleaned = _clean_entry(entry)
            if cleaned is not None:
                parent[find(cleaned)] = find(head)

    members: dict[str, set[str]] = {}
    for term in list(parent):
        members.setdefault(find(term), set()).add(term)

    groups: dict[str, frozenset[str]] = {}
    for group in members.values():
        frozen = frozenset(group)
        for term in group:
            groups[term] = frozen
    return groups


def load_lexicon(path: str | Path) -> Lexicon:
    """Read a lexicon from JSON: `{"stopwords": [...], "synonyms": {term: [...]}}`.

    Missing keys fall back to the built-in defaults.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return Lexicon(
        stopwords=data.get("stopwords", DEFAULT_STOPWORDS),
        synonyms=data.get("synonyms"),
        variant_weight=float(data.get("variant_weight", 0.8)),
        synonym_weight=float(data.get("synonym_weight", 0.6)),
    )


DEFAULT_LEXICON = Lexicon()


def tokenize(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> list[str]:
    """Return base tokens in text order, stopwords and one-character tokens removed.

    Hyphenated compounds yield the compound and each of its parts. Dotted tokens
    stay whole only when they contain a digit, as policy numbers such as
    `b.2.2.15` or `d.9.def.sign` do; words run together by a period
    (`permitted.heliports`) are split apart.
    """
    if not text:
        return []
    normalized = unicodedata.normalize("NFKC", text).lower().translate(_APOSTROPHES)
    tokens: list[str] = []
    for match in _TOKEN_RE.findall(normalized):
        words = [match]
        if "." in match and not any(char.isdigit() for char in match):
            words = [word for word in match.split(".") if word]
        for word in words:
            pieces = [word]
            if "-" in word and "." not in word:
                pieces.extend(part for part in word.split("-") if part)
            for piece in pieces:
                if len(piece) > 1 and piece not in lexicon.stopwords:
                    tokens.append(piece)
    return tokens


def number_variants(token: str) -> list[str]:
    """Plural and singular spellings of `token` from suffix rules alone."""
    if len(token) < 3 or any(char.isdigit() for char in token) or "." in token:
        return []
    if token.endswith("ies") and len(token) > 4:
        return [token[:-3] + "y"]
    if token.endswith("es") and token[:-2].endswith(_SIBILANT_ENDINGS):
        return [token[:-2], token[:-1]]
    if token.endswith("s") and not token.endswith(("ss", "us", "is")):
        return [token[:-1]]
    if token.endswith("y") and token[-2] not in _VOWELS:
        return [token[:-1] + "ies"]
    if token.endswith(_SIBILANT_ENDINGS):
        return [token + "es"]
    return [token + "s"]


def _raise_weight(terms: dict[str, float], term: str, weight: float) -> None:
    if weight > terms.get(term, 0.0):
        terms[term] = weight


def expand_terms(terms: Mapping[str, float], lexicon: Lexicon = DEFAULT_LEXICON) -> dict[str, float]:
    """Broaden a term set with synonyms from the lexicon.

    Each synonym inherits the weight of the term that produced it scaled by
    `lexicon.synonym_weight`. Applying the function twice gives the same result
    as applying it once.
    """
    expanded = dict(terms)
    for term, weight in terms.items():
        for synonym in lexicon.synonyms_for(term):
            _raise_weight(expanded, synonym, weight * lexicon.synonym_weight)
    return expanded


def expand_token(token: str, lexicon: Lexicon = DEFAULT_LEXICON) -> dict[str, float]:
    """Weighted term set produced by one base token: itself, its variants, synonyms."""
    terms = {token: 1.0}
    for variant in number_variants(token):
        _raise_weight(terms, variant, lexicon.variant_weight)
    return expand_terms(terms, lexicon)


def extract_terms(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> dict[str, float]:
    """Turn free text into a weighted term set ready for scoring.

    Never raises on string input; empty or symbol-only text gives an empty set.
    """
    terms: dict[str, float] = {}
    for token in tokenize(text, lexicon):
        for term, weight in expand_token(token, lexicon).items():
            _raise_weight(terms, term, weight)
    return terms
