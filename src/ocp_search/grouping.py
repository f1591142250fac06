from __future__ import annotations

from collections.abc import Mapping

from .schema import ResultGroup, ScoredCandidate


def group_by_section(
    candidates: list[ScoredCandidate],
    section_titles: Mapping[str, str] | None = None,
) -> list[ResultGroup]:
    """Collapse ranked candidates into section groups for display.

    Members keep their relative input order. Groups are ordered by their best
    member score, descending, with ties broken by section id.

    Args:
        candidates: Ranked lexical candidates.
        section_titles: Optional section id to title lookup, typically
            `Corpus.section_titles`; falls back to the first member's title.

    Returns:
        One group per distinct parent section, covering every candidate once.
    """
    groups: dict[str, ResultGroup] = {}
    for candidate in candidates:
        section_id = candidate.passage.parent_id
        group = groups.get(section_id)
        if group is None:
            title = candidate.passage.section_title
            if section_titles is not None:
                title = section_titles.get(section_id, title)
            group = groups[section_id] = ResultGroup(section_id=section_id, section_title=title, members=[])
        group.members.append(candidate)

    return sorted(groups.values(), key=lambda group: (-group.best_score, group.section_id))
