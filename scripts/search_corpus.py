"""Run the lexical search path against a corpus file and print grouped results."""
from __future__ import annotations

import argparse

from ocp_search.corpus import load_corpus
from ocp_search.logging_config import configure_logging
from ocp_search.normalization import DEFAULT_LEXICON, load_lexicon
from ocp_search.pipeline import search


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search community plan passages")
    parser.add_argument("question", type=str, help="Question to search for")
    parser.add_argument("--corpus", default="data/ocp_chunks.json", help="Chunk export (.json or .jsonl)")
    parser.add_argument("--limit", type=int, default=50, help="Maximum number of candidates")
    parser.add_argument("--lexicon", default=None, help="Optional lexicon JSON file")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging()
    lexicon = load_lexicon(args.lexicon) if args.lexicon else DEFAULT_LEXICON
    corpus = load_corpus(args.corpus)
    response = search(args.question, corpus, limit=args.limit, lexicon=lexicon)
    if not response.groups:
        print("No matching passages.")
        return
    for group in response.groups:
        print(f"{group.section_id}  {group.section_title}  (best {group.best_score:.3f})")
        for member in group.members:
            print(f"    [{member.passage.id}] {member.score:.3f}  {member.passage.text[:100]}")


if __name__ == "__main__":
    main()
