"""
Search Strategies - Exact Match

Looks up issues referenced by number (#123, issue 123, repo#123).
"""

import logging
from typing import AbstractSet

from issue_search.config import get_settings
from issue_search.schemas.search import SearchCriteria
from issue_search.search.strategies.base import SearchStrategy, StrategyResult

logger = logging.getLogger(__name__)


class ExactMatchStrategy(SearchStrategy):
    """
    Direct lookup by issue number.

    The result is terminal only when every referenced number was found, so a
    query like "#12 login crash" with an unknown #12 still gets the other
    strategies' matches.
    """

    priority = 100

    def __init__(self, index, settings=None):
        self.index = index
        self.settings = settings or get_settings()

    def can_handle(self, criteria: SearchCriteria) -> bool:
        return criteria.has_issue_numbers

    async def execute(
        self,
        criteria: SearchCriteria,
        found_ids: AbstractSet[int],
    ) -> StrategyResult:
        matches = await self.index.find_by_numbers(
            criteria.issue_numbers,
            state=criteria.state,
            repository_ids=criteria.repository_ids,
            repository_name=criteria.repository_name,
            limit=self.settings.search.max_candidates,
        )

        result = self.collect(matches, found_ids)

        resolved = {issue.number for issue in result.results}
        if criteria.issue_numbers <= resolved:
            result.is_terminal = True
            result.total_count = len(result.results)

        logger.debug(
            f"ExactMatch found {len(result.results)} issues for numbers "
            f"{sorted(criteria.issue_numbers)} (terminal={result.is_terminal})"
        )
        return result
