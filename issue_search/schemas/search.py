"""
Schemas - Search Models

Pydantic models for search criteria, issue results and result pages.
"""

import math
from pydantic import BaseModel, Field, NonNegativeInt
from typing import FrozenSet, List, Literal, Optional, Tuple

IssueState = Literal["all", "open", "closed"]


def count_pages(total_count: int, page_size: int) -> int:
    """Number of pages needed to show total_count items."""
    return math.ceil(total_count / page_size)


class SearchCriteria(BaseModel):
    """Normalized query, filters and paging request for one search call."""
    query: str = ""
    issue_numbers: FrozenSet[NonNegativeInt] = frozenset()
    repository_name: Optional[str] = None
    semantic_query: Optional[str] = None
    state: IssueState = "all"
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1)
    repository_ids: Optional[Tuple[NonNegativeInt, ...]] = None

    model_config = {"frozen": True}

    @property
    def has_issue_numbers(self) -> bool:
        return len(self.issue_numbers) > 0

    @property
    def has_semantic_query(self) -> bool:
        return bool(self.semantic_query and self.semantic_query.strip())

    @property
    def has_repository_filter(self) -> bool:
        return bool(self.repository_ids)


class IssueSearchResult(BaseModel):
    """Single issue hit."""
    id: int
    number: int
    title: str
    is_open: bool
    url: str
    repository_name: str
    similarity: float = Field(default=1.0, ge=0.0, le=1.0)
    is_exact_match: bool = False
    labels: List[str] = []

    @property
    def state(self) -> str:
        return "open" if self.is_open else "closed"

    @property
    def owner(self) -> str:
        parts = self.repository_name.split("/")
        return parts[0] if len(parts) == 2 else ""

    @property
    def repo_name(self) -> str:
        parts = self.repository_name.split("/")
        return parts[1] if len(parts) == 2 else ""

    @property
    def similarity_percent(self) -> str:
        """Similarity formatted for display, e.g. "85.3%"."""
        return f"{self.similarity * 100:.1f}%"


class SearchResultPage(BaseModel):
    """One page of combined search results."""
    results: List[IssueSearchResult] = []
    total_count: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1)
    total_pages: int = Field(default=0, ge=0)

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @classmethod
    def empty(cls, page: int, page_size: int) -> "SearchResultPage":
        return cls(page=page, page_size=page_size)
