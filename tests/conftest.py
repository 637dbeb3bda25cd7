"""
Shared fixtures
"""

import pytest

from issue_search.config import Settings
from issue_search.schemas.search import IssueSearchResult


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def make_issue():
    """Factory for IssueSearchResult objects keyed by store id."""

    def _make(issue_id, number=None, is_open=True, repository="acme/app", similarity=1.0):
        number = issue_id if number is None else number
        return IssueSearchResult(
            id=issue_id,
            number=number,
            title=f"Issue {number}",
            is_open=is_open,
            url=f"https://github.com/{repository}/issues/{number}",
            repository_name=repository,
            similarity=similarity,
        )

    return _make
