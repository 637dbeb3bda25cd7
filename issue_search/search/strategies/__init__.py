"""
Search Strategies Module

Retrieval techniques combined by IssueSearchService.
"""

from typing import List

from issue_search.search.strategies.base import SearchStrategy, StrategyResult
from issue_search.search.strategies.exact_match import ExactMatchStrategy
from issue_search.search.strategies.semantic import SemanticStrategy
from issue_search.search.strategies.text import TextStrategy
from issue_search.search.strategies.browse import BrowseStrategy


def build_default_strategies(index, embedder, settings) -> List[SearchStrategy]:
    """Exact match, semantic, text and browse strategies over one index."""
    return [
        ExactMatchStrategy(index, settings),
        SemanticStrategy(index, embedder, settings),
        TextStrategy(index, settings),
        BrowseStrategy(index),
    ]


__all__ = [
    "SearchStrategy",
    "StrategyResult",
    "ExactMatchStrategy",
    "SemanticStrategy",
    "TextStrategy",
    "BrowseStrategy",
    "build_default_strategies",
]
