from ocp_search.corpus import load_corpus
from ocp_search.grouping import group_by_section
from ocp_search.retrieval import search_corpus


if __name__ == "__main__":
    corpus = load_corpus("data/ocp_chunks.json")
    candidates = search_corpus("Can I build a secondary suite for affordable housing?", corpus)
    groups = group_by_section(candidates, corpus.section_titles)
    print(
        {
            "passages": len(corpus),
            "candidates": len(candidates),
            "groups": len(groups),
            "top": candidates[0].passage.id if candidates else None,
        }
    )
