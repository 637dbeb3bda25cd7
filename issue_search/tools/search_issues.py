"""
MCP Tool - search_issues

Search GitHub issues by number, meaning, keywords or recency.
"""

from fastmcp import FastMCP
from typing import List, Literal, Optional

from issue_search.config import get_settings
from issue_search.schemas.search import SearchResultPage
from issue_search.services import IssueSearchService

router = FastMCP("search_issues")

_service: Optional[IssueSearchService] = None


def get_search_service() -> IssueSearchService:
    """Shared service so the embedding model loads once."""
    global _service
    if _service is None:
        _service = IssueSearchService()
    return _service


def page_to_dict(page: SearchResultPage) -> dict:
    """Serialize a result page for MCP clients."""
    return {
        "results": [
            {
                "id": r.id,
                "number": r.number,
                "title": r.title,
                "state": r.state,
                "url": r.url,
                "repository": r.repository_name,
                "similarity": round(r.similarity, 4),
                "exact_match": r.is_exact_match,
                "labels": r.labels,
            }
            for r in page.results
        ],
        "total_count": page.total_count,
        "page": page.page,
        "page_size": page.page_size,
        "total_pages": page.total_pages,
        "has_previous_page": page.has_previous_page,
        "has_next_page": page.has_next_page,
    }


async def run_search(
    service: IssueSearchService,
    query: str = "",
    state: Literal["all", "open", "closed"] = "all",
    page: int = 1,
    page_size: Optional[int] = None,
    repository_ids: Optional[List[int]] = None,
) -> dict:
    settings = service.settings.search
    size = min(page_size or settings.default_page_size, settings.max_page_size)

    result_page = await service.search(
        query=query,
        state=state,
        page=page,
        page_size=size,
        repository_ids=repository_ids,
    )
    return page_to_dict(result_page)


@router.tool()
async def search_issues(
    query: str = "",
    state: Literal["all", "open", "closed"] = "all",
    page: int = 1,
    page_size: Optional[int] = None,
    repository_ids: Optional[List[int]] = None,
) -> dict:
    """
    Search GitHub issues.

    "#123", "owner/repo#123" or "issue 123" jump straight to that issue.
    Free text is matched semantically and by keywords. An empty query lists
    the most recently updated issues.

    Args:
        query: Issue references and/or natural language
        state: "all", "open" or "closed"
        page: Page number, starting at 1
        page_size: Results per page (default 10, max 50)
        repository_ids: Optional repository ids to restrict the search

    Returns:
        One page of issues with title, URL, state, repository and similarity
    """
    return await run_search(
        get_search_service(),
        query=query,
        state=state,
        page=page,
        page_size=page_size,
        repository_ids=repository_ids,
    )
