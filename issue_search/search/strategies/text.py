"""
Search Strategies - Text

Keyword matching against issue titles and bodies.
"""

import logging
from typing import AbstractSet

from issue_search.config import get_settings
from issue_search.schemas.search import SearchCriteria
from issue_search.search.strategies.base import SearchStrategy, StrategyResult

logger = logging.getLogger(__name__)


class TextStrategy(SearchStrategy):
    """Full-text match; scores sit below typical semantic hits."""

    priority = 60

    def __init__(self, index, settings=None):
        self.index = index
        self.settings = settings or get_settings()

    def can_handle(self, criteria: SearchCriteria) -> bool:
        return criteria.has_semantic_query

    async def execute(
        self,
        criteria: SearchCriteria,
        found_ids: AbstractSet[int],
    ) -> StrategyResult:
        matches = await self.index.search_text(
            criteria.semantic_query,
            state=criteria.state,
            repository_ids=criteria.repository_ids,
            limit=self.settings.search.max_candidates + len(found_ids),
            similarity=self.settings.search.text_match_score,
        )

        result = self.collect(matches, found_ids)

        logger.debug(
            f"Text search found {len(result.results)} new issues "
            f"({len(matches)} raw) for '{criteria.semantic_query}'"
        )
        return result
