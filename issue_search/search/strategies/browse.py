"""
Search Strategies - Browse

Fallback listing of issues in scope, newest first.
"""

import logging
from typing import AbstractSet

from issue_search.schemas.search import SearchCriteria
from issue_search.search.strategies.base import SearchStrategy, StrategyResult

logger = logging.getLogger(__name__)


class BrowseStrategy(SearchStrategy):
    """
    Lists issues filtered only by state and repository scope.

    The whole scope is listed so that any page of the combined result can be
    served; only the scored strategies are capped.
    """

    priority = 10

    def __init__(self, index):
        self.index = index

    def can_handle(self, criteria: SearchCriteria) -> bool:
        return True

    async def execute(
        self,
        criteria: SearchCriteria,
        found_ids: AbstractSet[int],
    ) -> StrategyResult:
        issues = await self.index.list_recent(
            state=criteria.state,
            repository_ids=criteria.repository_ids,
        )

        result = self.collect(issues, found_ids)

        logger.debug(f"Browse listed {len(result.results)} {criteria.state} issues")
        return result
