"""Tests for grouping.py."""
from __future__ import annotations

from conftest import make_passage

from ocp_search.grouping import group_by_section
from ocp_search.schema import ScoredCandidate


class TestGroupBySection:
    def test_groups_ordered_by_best_score(self, sample_candidates):
        groups = group_by_section(sample_candidates)
        assert [group.section_id for group in groups] == ["B.4", "A.1"]

    def test_members_keep_input_order(self, sample_candidates):
        groups = group_by_section(sample_candidates)
        residential = groups[1]
        assert [member.passage.id for member in residential.members] == ["A.1.1", "A.1.2"]

    def test_every_candidate_appears_once(self, sample_candidates):
        groups = group_by_section(sample_candidates)
        ids = [member.passage.id for group in groups for member in group.members]
        assert sorted(ids) == sorted(candidate.passage.id for candidate in sample_candidates)

    def test_title_lookup_overrides_member_title(self, sample_candidates):
        groups = group_by_section(sample_candidates, {"B.4": "Groundwater and Wells"})
        assert groups[0].section_title == "Groundwater and Wells"
        assert groups[1].section_title == "Residential Housing"

    def test_ties_broken_by_section_id(self):
        candidates = [
            ScoredCandidate(passage=make_passage("C.1.1", "c", parent="C.1"), score=1.0),
            ScoredCandidate(passage=make_passage("A.2.1", "a", parent="A.2"), score=1.0),
        ]
        assert [group.section_id for group in group_by_section(candidates)] == ["A.2", "C.1"]

    def test_empty_input(self):
        assert group_by_section([]) == []
