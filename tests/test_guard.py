"""Tests for guard.py — request validation and truncation."""
from __future__ import annotations

import pytest

from ocp_search.errors import ValidationError
from ocp_search.guard import (
    Limits,
    validate_ask_request,
    validate_candidates,
    validate_question,
    validate_texts,
)


# ---------------------------------------------------------------------------
# validate_question
# ---------------------------------------------------------------------------

class TestValidateQuestion:
    def test_strips_whitespace(self):
        assert validate_question("  Can I build a suite?  ") == "Can I build a suite?"

    @pytest.mark.parametrize("value", [None, "", "   ", 42, ["question"]])
    def test_missing_or_blank_rejected(self, value):
        with pytest.raises(ValidationError, match="Missing question"):
            validate_question(value)

    def test_long_question_truncated(self):
        assert len(validate_question("q" * 1500)) == 1000

    def test_custom_limit(self):
        assert validate_question("abcdef", Limits(max_question_chars=3)) == "abc"


# ---------------------------------------------------------------------------
# validate_candidates
# ---------------------------------------------------------------------------

class TestValidateCandidates:
    def test_converts_records(self, candidate_records):
        passages = validate_candidates(candidate_records)
        assert [p.id for p in passages] == ["B.2.2.2.15", "C.2.2.2.2", "D.9.def.sign"]
        assert passages[0].section_title == "Affordable Housing"

    def test_parent_defaults_to_id_prefix(self, candidate_records):
        passages = validate_candidates(candidate_records)
        assert passages[0].parent_id == "B.2.2.2"
        assert passages[2].parent_id == "D.9.def"

    def test_explicit_parent_kept(self):
        passages = validate_candidates([{"id": "B.2.1.2.4", "parent": "B.2.1", "text": "Suites."}])
        assert passages[0].parent_id == "B.2.1"

    def test_id_without_dot_is_its_own_parent(self):
        assert validate_candidates([{"id": "intro", "text": "Intro."}])[0].parent_id == "intro"

    @pytest.mark.parametrize("value", [None, [], "candidates", {"id": "x"}])
    def test_missing_candidates_rejected(self, value):
        with pytest.raises(ValidationError, match="Missing candidates"):
            validate_candidates(value)

    def test_too_many_candidates_rejected(self):
        records = [{"id": f"P-{i}", "text": "text"} for i in range(61)]
        with pytest.raises(ValidationError, match="Too many candidates"):
            validate_candidates(records)

    def test_exactly_at_limit_accepted(self):
        records = [{"id": f"P-{i}", "text": "text"} for i in range(60)]
        assert len(validate_candidates(records)) == 60

    def test_invalid_records_dropped(self, candidate_records):
        records = [{"id": "", "text": "x"}, {"id": "P-1"}, "junk", {"id": True, "text": "x"}, *candidate_records]
        assert len(validate_candidates(records)) == 3

    def test_numeric_id_converted_to_string(self):
        passages = validate_candidates([{"id": 12, "text": "Numbered."}, {"id": "A.1", "text": "Lettered."}])
        assert [p.id for p in passages] == ["12", "A.1"]
        assert passages[0].parent_id == "12"

    def test_id_kept_verbatim(self):
        passage = validate_candidates([{"id": " B.2.1 ", "text": "Spaced id."}])[0]
        assert passage.id == " B.2.1 "

    def test_blank_string_id_still_dropped(self):
        passages = validate_candidates([{"id": "   ", "text": "x"}, {"id": "A.1", "text": "y"}])
        assert [p.id for p in passages] == ["A.1"]

    def test_all_invalid_rejected(self):
        with pytest.raises(ValidationError, match="No valid candidates"):
            validate_candidates([{"id": "P-1", "text": "   "}, {"text": "orphan"}])

    def test_fields_truncated(self):
        limits = Limits(max_id_chars=4, max_title_chars=5, max_text_chars=6)
        passage = validate_candidates(
            [{"id": "ABCDEFG", "sectionTitle": "Long Title", "text": "abcdefghij"}], limits
        )[0]
        assert passage.id == "ABCD"
        assert passage.section_title == "Long "
        assert passage.text == "abcdef"

    def test_snake_case_keys_accepted(self):
        passage = validate_candidates(
            [{"id": "A.1", "parent_id": "A", "section_title": "Intro", "text": "Text."}]
        )[0]
        assert passage.parent_id == "A"
        assert passage.section_title == "Intro"


# ---------------------------------------------------------------------------
# validate_ask_request / validate_texts
# ---------------------------------------------------------------------------

class TestValidateAskRequest:
    def test_valid_payload(self, candidate_records):
        question, passages = validate_ask_request({"question": "Water?", "candidates": candidate_records})
        assert question == "Water?"
        assert len(passages) == 3

    def test_non_mapping_rejected(self):
        with pytest.raises(ValidationError):
            validate_ask_request(["question"])

    def test_question_checked_first(self):
        with pytest.raises(ValidationError, match="Missing question"):
            validate_ask_request({"candidates": []})


class TestValidateTexts:
    def test_valid_texts(self):
        assert validate_texts(["a", "b"]) == ["a", "b"]

    @pytest.mark.parametrize("value", [None, [], "text"])
    def test_missing_texts_rejected(self, value):
        with pytest.raises(ValidationError, match="Missing 'texts' array"):
            validate_texts(value)

    def test_non_string_entry_rejected(self):
        with pytest.raises(ValidationError, match="must be a string"):
            validate_texts(["a", 3])

    def test_too_many_texts_rejected(self):
        with pytest.raises(ValidationError, match="Too many texts"):
            validate_texts(["a"] * 3, Limits(max_embed_texts=2))

    def test_texts_truncated(self):
        assert validate_texts(["abcdef"], Limits(max_text_chars=2)) == ["ab"]
