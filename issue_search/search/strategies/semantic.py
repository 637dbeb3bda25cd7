"""
Search Strategies - Semantic

Embedding similarity search over the issue index.
"""

import asyncio
import logging
from typing import AbstractSet

from issue_search.config import get_settings
from issue_search.schemas.search import SearchCriteria
from issue_search.search.strategies.base import SearchStrategy, StrategyResult

logger = logging.getLogger(__name__)


class SemanticStrategy(SearchStrategy):
    """
    Ranks issues by cosine similarity to the embedded semantic query.

    When the query cannot be embedded, the same query is answered by keyword
    matching instead, scored like TextStrategy hits.
    """

    priority = 80

    def __init__(self, index, embedder, settings=None):
        self.index = index
        self.embedder = embedder
        self.settings = settings or get_settings()

    def can_handle(self, criteria: SearchCriteria) -> bool:
        return criteria.has_semantic_query

    async def execute(
        self,
        criteria: SearchCriteria,
        found_ids: AbstractSet[int],
    ) -> StrategyResult:
        limit = self.settings.search.max_candidates + len(found_ids)

        try:
            # fastembed inference is CPU bound
            vector = await asyncio.to_thread(
                self.embedder.embed_query, criteria.semantic_query
            )
        except Exception as e:
            logger.warning(
                f"Embedding unavailable, falling back to text search "
                f"for '{criteria.semantic_query}': {e}"
            )
            matches = await self.index.search_text(
                criteria.semantic_query,
                state=criteria.state,
                repository_ids=criteria.repository_ids,
                limit=limit,
                similarity=self.settings.search.text_match_score,
            )
            return self.collect(matches, found_ids)

        matches = await self.index.search_similar(
            vector,
            state=criteria.state,
            repository_ids=criteria.repository_ids,
            limit=limit,
            min_similarity=self.settings.search.min_similarity,
        )

        result = self.collect(matches, found_ids)

        logger.debug(
            f"Semantic search found {len(result.results)} issues "
            f"for '{criteria.semantic_query}'"
        )
        return result
