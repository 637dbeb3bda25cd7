"""
Search Module - Query Classification and Strategies
"""

from issue_search.search.query_classifier import ClassifiedQuery, classify

__all__ = [
    "ClassifiedQuery",
    "classify",
]
