"""
Schemas Module - Pydantic Models

Data models for search criteria, issue results and result pages.
"""

from issue_search.schemas.search import (
    IssueState,
    SearchCriteria,
    IssueSearchResult,
    SearchResultPage,
    count_pages,
)

__all__ = [
    "IssueState",
    "SearchCriteria",
    "IssueSearchResult",
    "SearchResultPage",
    "count_pages",
]
