"""
Services - Search Service

Runs the registered search strategies in priority order and merges their
results into one deduplicated, paginated page.
"""

import logging
from typing import List, Optional, Sequence

from issue_search.config import get_settings
from issue_search.schemas.search import (
    IssueSearchResult,
    IssueState,
    SearchCriteria,
    SearchResultPage,
    count_pages,
)
from issue_search.search.query_classifier import classify
from issue_search.search.strategies import SearchStrategy, build_default_strategies

logger = logging.getLogger(__name__)


class IssueSearchService:
    """Combines exact, semantic, text and browse strategies."""

    def __init__(
        self,
        settings=None,
        strategies: Optional[Sequence[SearchStrategy]] = None,
    ):
        self.settings = settings or get_settings()

        if strategies is None:
            from issue_search.services.embedder import Embedder
            from issue_search.services.issue_index import QdrantIssueIndex

            strategies = build_default_strategies(
                QdrantIssueIndex(self.settings),
                Embedder(self.settings),
                self.settings,
            )

        # sorted() is stable, so equal priorities keep registration order
        self.strategies: List[SearchStrategy] = sorted(
            strategies, key=lambda s: s.priority, reverse=True
        )

    async def search(
        self,
        query: Optional[str],
        state: IssueState = "all",
        page: int = 1,
        page_size: int = 10,
        repository_ids: Optional[Sequence[int]] = None,
    ) -> SearchResultPage:
        """
        Search issues with every applicable strategy.

        Strategies run one at a time; each sees the ids found before it. A
        terminal result is returned as-is and stops the remaining strategies.
        Strategy errors and cancellation propagate to the caller.

        Args:
            query: Raw query text (issue references and/or free text)
            state: "all", "open" or "closed"
            page: 1-based page number
            page_size: Results per page
            repository_ids: Only include issues from these repositories

        Returns:
            SearchResultPage for the requested page
        """
        classified = classify(query)
        criteria = SearchCriteria(
            query=query or "",
            issue_numbers=classified.issue_numbers,
            repository_name=classified.repository_name,
            semantic_query=classified.semantic_query,
            state=state,
            page=page,
            page_size=page_size,
            repository_ids=repository_ids,
        )

        applicable = [s for s in self.strategies if s.can_handle(criteria)]
        if not applicable:
            logger.debug(f"No applicable search strategy for query: {query!r}")
            return SearchResultPage.empty(criteria.page, criteria.page_size)

        found_ids = set()
        combined: List[IssueSearchResult] = []

        for strategy in applicable:
            result = await strategy.execute(criteria, frozenset(found_ids))

            if result.is_terminal:
                total_count = (
                    result.total_count
                    if result.total_count is not None
                    else len(result.results)
                )
                logger.info(
                    f"{strategy!r} returned a terminal result "
                    f"({total_count} issues) for query: {query!r}"
                )
                return SearchResultPage(
                    results=result.results,
                    total_count=total_count,
                    page=criteria.page,
                    page_size=criteria.page_size,
                    total_pages=count_pages(total_count, criteria.page_size),
                )

            for issue in result.results:
                if issue.id in found_ids:
                    logger.warning(
                        f"{strategy!r} returned already found issue {issue.id}"
                    )
                    continue
                combined.append(issue)
                found_ids.add(issue.id)
            found_ids.update(result.found_ids)

        total_count = len(combined)
        skip = (criteria.page - 1) * criteria.page_size

        return SearchResultPage(
            results=combined[skip:skip + criteria.page_size],
            total_count=total_count,
            page=criteria.page,
            page_size=criteria.page_size,
            total_pages=count_pages(total_count, criteria.page_size),
        )
