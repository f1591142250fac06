"""Tests for normalization.py — tokenization, variants, synonym expansion."""
from __future__ import annotations

import json

import pytest

from ocp_search.normalization import (
    DEFAULT_LEXICON,
    Lexicon,
    expand_terms,
    extract_terms,
    load_lexicon,
    number_variants,
    tokenize,
)


# ---------------------------------------------------------------------------
# tokenize
# ---------------------------------------------------------------------------

class TestTokenize:
    def test_lowercases_and_drops_stopwords(self):
        assert tokenize("The Buildings, and ROADS!") == ["buildings", "roads"]

    def test_empty_string_returns_empty_list(self):
        assert tokenize("") == []

    def test_symbols_only_returns_empty_list(self):
        assert tokenize("--- !!! ???") == []

    def test_policy_numbers_stay_whole(self):
        tokens = tokenize("Policy B.2.2.2.15 applies.")
        assert "b.2.2.2.15" in tokens
        assert "policy" in tokens

    def test_hyphenated_compound_yields_parts(self):
        assert tokenize("short-term rentals") == ["short-term", "short", "term", "rentals"]

    def test_words_joined_by_period_are_split(self):
        assert tokenize("Docks are permitted.Heliports are not.") == ["docks", "permitted", "heliports"]

    def test_dotted_ids_with_digits_stay_whole(self):
        assert tokenize("See D.9.def.sign and 3.5 metres") == ["see", "d.9.def.sign", "3.5", "metres"]

    def test_hyphen_compound_after_period_split(self):
        assert tokenize("rules.short-term") == ["rules", "short-term", "short", "term"]

    def test_possessive_apostrophe_removed(self):
        assert tokenize("owner's dwelling") == ["owners", "dwelling"]

    def test_single_characters_dropped(self):
        assert tokenize("x y zoning") == ["zoning"]

    def test_fullwidth_characters_normalized(self):
        assert tokenize("Ｚｏｎｉｎｇ") == ["zoning"]

    def test_custom_stopwords(self):
        lexicon = Lexicon(stopwords=["policy"], synonyms={})
        assert tokenize("policy text", lexicon) == ["text"]


# ---------------------------------------------------------------------------
# number_variants
# ---------------------------------------------------------------------------

class TestNumberVariants:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("buildings", ["building"]),
            ("building", ["buildings"]),
            ("properties", ["property"]),
            ("property", ["properties"]),
            ("boxes", ["box", "boxe"]),
            ("access", ["accesses"]),
            ("days", ["day"]),
        ],
    )
    def test_suffix_rules(self, token, expected):
        assert number_variants(token) == expected

    def test_tokens_with_digits_have_no_variants(self):
        assert number_variants("b.2.2") == []
        assert number_variants("r2s") == []

    def test_short_tokens_have_no_variants(self):
        assert number_variants("ab") == []


# ---------------------------------------------------------------------------
# extract_terms / expand_terms
# ---------------------------------------------------------------------------

class TestExtractTerms:
    def test_base_token_and_variant_weights(self):
        assert extract_terms("buildings") == {"buildings": 1.0, "building": 0.8}

    def test_empty_text_gives_empty_set(self):
        assert extract_terms("") == {}

    def test_text_without_words_gives_empty_set(self):
        assert extract_terms("☃ ... ±±") == {}

    def test_synonyms_are_added_with_reduced_weight(self):
        terms = extract_terms("aquifer")
        assert terms["aquifer"] == 1.0
        assert terms["water"] == pytest.approx(0.6)
        assert terms["groundwater"] == pytest.approx(0.6)

    def test_direct_token_keeps_full_weight_over_synonym(self):
        terms = extract_terms("water aquifer")
        assert terms["water"] == 1.0
        assert terms["aquifer"] == 1.0


class TestExpandTerms:
    def test_idempotent_on_default_lexicon(self):
        terms = {"adu": 1.0, "farm": 0.5, "zzz": 0.3, "housing": 0.8}
        once = expand_terms(terms)
        assert expand_terms(once) == once

    def test_idempotent_on_extracted_terms(self):
        once = expand_terms(extract_terms("affordable cottages near the shoreline"))
        assert expand_terms(once) == once

    def test_synonym_table_is_closed_transitively(self):
        lexicon = Lexicon(synonyms={"a1": ["b1"], "b1": ["c1"]})
        expanded = expand_terms({"a1": 1.0}, lexicon)
        assert set(expanded) == {"a1", "b1", "c1"}
        assert expand_terms(expanded, lexicon) == expanded

    def test_terms_without_synonyms_unchanged(self):
        assert expand_terms({"heliport": 1.0}) == {"heliport": 1.0}

    def test_does_not_mutate_input(self):
        terms = {"adu": 1.0}
        expand_terms(terms)
        assert terms == {"adu": 1.0}


# ---------------------------------------------------------------------------
# Lexicon
# ---------------------------------------------------------------------------

class TestLexicon:
    def test_multi_word_entries_are_skipped(self):
        lexicon = Lexicon(synonyms={"str": ["vacation rental", "airbnb"]})
        assert lexicon.synonyms_for("str") == frozenset({"airbnb"})

    def test_synonyms_for_excludes_term_itself(self):
        assert "adu" not in DEFAULT_LEXICON.synonyms_for("adu")
        assert "cottage" in DEFAULT_LEXICON.synonyms_for("adu")

    def test_unknown_term_has_no_synonyms(self):
        assert DEFAULT_LEXICON.synonyms_for("heliport") == frozenset()

    def test_invalid_weights_rejected(self):
        with pytest.raises(ValueError):
            Lexicon(variant_weight=0.0)
        with pytest.raises(ValueError):
            Lexicon(synonym_weight=1.5)

    def test_load_lexicon_from_json(self, tmp_path):
        path = tmp_path / "lexicon.json"
        path.write_text(
            json.dumps({"stopwords": ["policy"], "synonyms": {"dock": ["wharf", "pier"]}}),
            encoding="utf-8",
        )
        lexicon = load_lexicon(path)
        assert tokenize("policy dock", lexicon) == ["dock"]
        assert lexicon.synonyms_for("wharf") == frozenset({"dock", "pier"})

    def test_load_lexicon_defaults_for_missing_keys(self, tmp_path):
        path = tmp_path / "lexicon.json"
        path.write_text("{}", encoding="utf-8")
        lexicon = load_lexicon(path)
        assert "the" in lexicon.stopwords
        assert "cottage" in lexicon.synonyms_for("adu")
