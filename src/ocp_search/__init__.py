"""Hybrid lexical-semantic retrieval over Official Community Plan policies."""

from .schema import AskResult, Passage, RerankedCandidate, ResultGroup, ScoredCandidate

__all__ = ["Passage", "ScoredCandidate", "ResultGroup", "RerankedCandidate", "AskResult"]
