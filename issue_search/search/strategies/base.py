"""
Search Strategies - Base

Contract shared by every retrieval technique.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional, Set

from issue_search.schemas.search import IssueSearchResult, SearchCriteria


@dataclass
class StrategyResult:
    """Output of one strategy execution."""
    results: List[IssueSearchResult] = field(default_factory=list)
    found_ids: Set[int] = field(default_factory=set)
    is_terminal: bool = False
    total_count: Optional[int] = None


class SearchStrategy(ABC):
    """
    One retrieval technique.

    Strategies run in descending priority. Each one receives the ids already
    found by higher priority strategies and must leave them out of its results.
    """

    priority: int = 0

    @abstractmethod
    def can_handle(self, criteria: SearchCriteria) -> bool:
        """Whether this strategy applies to the criteria. Must be pure."""

    @abstractmethod
    async def execute(
        self,
        criteria: SearchCriteria,
        found_ids: AbstractSet[int],
    ) -> StrategyResult:
        """
        Retrieve candidates for the criteria.

        Args:
            criteria: Normalized search criteria
            found_ids: Ids already returned by earlier strategies (read-only)

        Returns:
            StrategyResult without any id from found_ids
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(priority={self.priority})"

    @staticmethod
    def collect(
        issues: Iterable[IssueSearchResult],
        found_ids: AbstractSet[int],
    ) -> StrategyResult:
        """Keep issues not seen before, tracking their ids."""
        result = StrategyResult()
        for issue in issues:
            if issue.id in found_ids or issue.id in result.found_ids:
                continue
            result.results.append(issue)
            result.found_ids.add(issue.id)
        return result
