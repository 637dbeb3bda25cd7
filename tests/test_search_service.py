"""
Unit Tests for IssueSearchService (strategy orchestration)
"""

import asyncio
import math

import pytest
from pydantic import ValidationError
from unittest.mock import AsyncMock, MagicMock

from issue_search.search.strategies import SearchStrategy, build_default_strategies
from issue_search.services.search_service import IssueSearchService


class FakeStrategy(SearchStrategy):
    """Strategy returning canned issues and recording its calls."""

    def __init__(
        self,
        priority,
        issues=(),
        handles=True,
        terminal=False,
        total_count=None,
        error=None,
        log=None,
    ):
        self.priority = priority
        self.issues = list(issues)
        self.handles = handles
        self.terminal = terminal
        self.total_count = total_count
        self.error = error
        self.log = log if log is not None else []
        self.calls = []
        self.criteria = []

    def can_handle(self, criteria):
        return self.handles

    async def execute(self, criteria, found_ids):
        self.calls.append(set(found_ids))
        self.criteria.append(criteria)
        self.log.append(self)
        if self.error:
            raise self.error
        result = self.collect(self.issues, found_ids)
        result.is_terminal = self.terminal
        result.total_count = self.total_count
        return result


class IgnoresExclusions(FakeStrategy):
    """Misbehaving strategy that reports everything it sees."""

    async def execute(self, criteria, found_ids):
        result = await super().execute(criteria, frozenset())
        return result


def ids(page):
    return [r.id for r in page.results]


class TestNoApplicableStrategy:
    """Tests for the empty-page outcome."""

    @pytest.mark.asyncio
    async def test_returns_empty_page_with_requested_paging(self, settings, make_issue):
        """Test no applicable strategy returns an empty page."""
        strategy = FakeStrategy(10, [make_issue(1)], handles=False)
        service = IssueSearchService(settings, strategies=[strategy])

        page = await service.search("anything", page=3, page_size=25)

        assert page.results == []
        assert page.total_count == 0
        assert page.total_pages == 0
        assert page.page == 3
        assert page.page_size == 25
        assert strategy.calls == []

    @pytest.mark.asyncio
    async def test_no_registered_strategies(self, settings):
        """Test an empty registry is not an error."""
        service = IssueSearchService(settings, strategies=[])

        page = await service.search("bug")

        assert page.total_count == 0
        assert page.results == []


class TestOrdering:
    """Tests for priority ordering."""

    @pytest.mark.asyncio
    async def test_higher_priority_runs_first(self, settings, make_issue):
        """Test strategies run by descending priority, not registration order."""
        log = []
        low = FakeStrategy(5, [make_issue(2)], log=log)
        high = FakeStrategy(50, [make_issue(1)], log=log)
        service = IssueSearchService(settings, strategies=[low, high])

        page = await service.search("bug")

        assert log == [high, low]
        assert ids(page) == [1, 2]

    @pytest.mark.asyncio
    async def test_ties_keep_registration_order(self, settings, make_issue):
        """Test equal priorities keep their registration order."""
        log = []
        first = FakeStrategy(5, [make_issue(1)], log=log)
        second = FakeStrategy(5, [make_issue(2)], log=log)
        top = FakeStrategy(9, [make_issue(3)], log=log)
        service = IssueSearchService(settings, strategies=[first, second, top])

        page = await service.search("bug")

        assert log == [top, first, second]
        assert ids(page) == [3, 1, 2]


class TestMerging:
    """Tests for exclusion propagation and deduplication."""

    @pytest.mark.asyncio
    async def test_exclusion_set_propagates(self, settings, make_issue):
        """Test lower priority strategies see ids found earlier."""
        a = FakeStrategy(10, [make_issue(1), make_issue(2)])
        b = FakeStrategy(5, [make_issue(2), make_issue(3)])
        service = IssueSearchService(settings, strategies=[a, b])

        page = await service.search("bug")

        assert a.calls == [set()]
        assert b.calls == [{1, 2}]
        assert ids(page) == [1, 2, 3]
        assert page.total_count == 3

    @pytest.mark.asyncio
    async def test_found_ids_are_passed_read_only(self, settings, make_issue):
        """Test strategies receive an immutable snapshot."""
        received = []

        class Capture(FakeStrategy):
            async def execute(self, criteria, found_ids):
                received.append(found_ids)
                return await super().execute(criteria, found_ids)

        a = FakeStrategy(10, [make_issue(1)])
        b = Capture(5, [])
        service = IssueSearchService(settings, strategies=[a, b])

        await service.search("bug")

        assert isinstance(received[0], frozenset)

    @pytest.mark.asyncio
    async def test_duplicates_never_reach_the_page(self, settings, make_issue):
        """Test ids reported twice are dropped even from a faulty strategy."""
        a = FakeStrategy(10, [make_issue(1), make_issue(2)])
        b = IgnoresExclusions(5, [make_issue(2), make_issue(4)])
        service = IssueSearchService(settings, strategies=[a, b])

        page = await service.search("bug", page_size=50)

        assert ids(page) == [1, 2, 4]
        assert len(set(ids(page))) == len(ids(page))


class TestTerminalResults:
    """Tests for terminal short-circuit."""

    @pytest.mark.asyncio
    async def test_terminal_stops_remaining_strategies(self, settings, make_issue):
        """Test lower priority strategies never run after a terminal result."""
        exact = FakeStrategy(100, [make_issue(42)], terminal=True)
        fallback = FakeStrategy(10, [make_issue(7)])
        service = IssueSearchService(settings, strategies=[exact, fallback])

        page = await service.search("#42")

        assert ids(page) == [42]
        assert page.total_count == 1
        assert page.total_pages == 1
        assert fallback.calls == []

    @pytest.mark.asyncio
    async def test_terminal_in_middle_discards_earlier_results(self, settings, make_issue):
        """Test a terminal result returns only that strategy's issues."""
        first = FakeStrategy(50, [make_issue(1)])
        terminal = FakeStrategy(40, [make_issue(2)], terminal=True)
        last = FakeStrategy(10, [make_issue(3)])
        service = IssueSearchService(settings, strategies=[first, terminal, last])

        page = await service.search("bug")

        assert ids(page) == [2]
        assert terminal.calls == [{1}]
        assert last.calls == []

    @pytest.mark.asyncio
    async def test_total_count_override(self, settings, make_issue):
        """Test the strategy's total count wins over its result length."""
        terminal = FakeStrategy(10, [make_issue(1)], terminal=True, total_count=35)
        service = IssueSearchService(settings, strategies=[terminal])

        page = await service.search("bug", page_size=10)

        assert page.total_count == 35
        assert page.total_pages == 4

    @pytest.mark.asyncio
    async def test_terminal_results_are_not_sliced(self, settings, make_issue):
        """Test terminal results are returned whole."""
        issues = [make_issue(i) for i in range(1, 16)]
        terminal = FakeStrategy(10, issues, terminal=True)
        service = IssueSearchService(settings, strategies=[terminal])

        page = await service.search("bug", page=2, page_size=10)

        assert len(page.results) == 15
        assert page.page == 2
        assert page.total_pages == 2


class TestPagination:
    """Tests for paging the combined list."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_number,expected", [
        (1, list(range(1, 11))),
        (2, list(range(11, 21))),
        (3, [21, 22, 23]),
        (4, []),
    ])
    async def test_page_window(self, settings, make_issue, page_number, expected):
        """Test page p holds items [(p-1)*P, min(N, p*P))."""
        a = FakeStrategy(10, [make_issue(i) for i in range(1, 14)])
        b = FakeStrategy(5, [make_issue(i) for i in range(14, 24)])
        service = IssueSearchService(settings, strategies=[a, b])

        page = await service.search("bug", page=page_number, page_size=10)

        assert ids(page) == expected
        assert page.total_count == 23
        assert page.total_pages == math.ceil(23 / 10)

    @pytest.mark.asyncio
    async def test_page_size_one(self, settings, make_issue):
        """Test the smallest page size."""
        a = FakeStrategy(10, [make_issue(1), make_issue(2), make_issue(3)])
        service = IssueSearchService(settings, strategies=[a])

        page = await service.search("bug", page=2, page_size=1)

        assert ids(page) == [2]
        assert page.total_pages == 3
        assert page.has_previous_page is True
        assert page.has_next_page is True


class TestFailures:
    """Tests for error, validation and cancellation behavior."""

    @pytest.mark.asyncio
    async def test_strategy_error_aborts_search(self, settings, make_issue):
        """Test a failing strategy propagates and stops the search."""
        a = FakeStrategy(10, [make_issue(1)])
        b = FakeStrategy(5, error=ConnectionError("qdrant down"))
        c = FakeStrategy(1, [make_issue(3)])
        service = IssueSearchService(settings, strategies=[a, b, c])

        with pytest.raises(ConnectionError):
            await service.search("bug")

        assert c.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"page": 0},
        {"page_size": 0},
        {"state": "pending"},
        {"repository_ids": [-1]},
    ])
    async def test_invalid_input_rejected(self, settings, make_issue, kwargs):
        """Test invalid paging or filters raise before any strategy runs."""
        a = FakeStrategy(10, [make_issue(1)])
        service = IssueSearchService(settings, strategies=[a])

        with pytest.raises(ValidationError):
            await service.search("bug", **kwargs)

        assert a.calls == []

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, settings, make_issue):
        """Test cancelling the search cancels the in-flight strategy."""
        started = asyncio.Event()

        class Blocking(FakeStrategy):
            async def execute(self, criteria, found_ids):
                started.set()
                await asyncio.Event().wait()

        blocking = Blocking(10)
        later = FakeStrategy(5, [make_issue(1)])
        service = IssueSearchService(settings, strategies=[blocking, later])

        task = asyncio.create_task(service.search("bug"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert later.calls == []


class TestCriteria:
    """Tests for criteria built from the raw query."""

    @pytest.mark.asyncio
    async def test_criteria_from_query(self, settings):
        """Test classification and filters reach the strategies."""
        recorder = FakeStrategy(10)
        service = IssueSearchService(settings, strategies=[recorder])

        await service.search(
            "acme/app#12 login crash",
            state="open",
            page=2,
            page_size=5,
            repository_ids=[3, 4],
        )

        criteria = recorder.criteria[0]
        assert criteria.query == "acme/app#12 login crash"
        assert criteria.issue_numbers == frozenset({12})
        assert criteria.repository_name == "acme/app"
        assert criteria.semantic_query == "login crash"
        assert criteria.state == "open"
        assert criteria.page == 2
        assert criteria.page_size == 5
        assert criteria.repository_ids == (3, 4)


class TestScenarios:
    """End-to-end scenarios with the default strategies and a fake index."""

    @pytest.fixture
    def index(self):
        index = MagicMock()
        index.find_by_numbers = AsyncMock(return_value=[])
        index.search_similar = AsyncMock(return_value=[])
        index.search_text = AsyncMock(return_value=[])
        index.list_recent = AsyncMock(return_value=[])
        return index

    @pytest.fixture
    def service(self, settings, index):
        embedder = MagicMock()
        embedder.embed_query.return_value = [0.1, 0.2, 0.3]
        strategies = build_default_strategies(index, embedder, settings)
        return IssueSearchService(settings, strategies=strategies)

    @pytest.mark.asyncio
    async def test_exact_issue_number(self, service, index, make_issue):
        """Test '#42' returns issue 42 as a single terminal hit."""
        index.find_by_numbers.return_value = [make_issue(42)]

        page = await service.search("#42")

        assert ids(page) == [42]
        assert page.total_count == 1
        assert page.page == 1
        assert page.page_size == 10
        assert page.total_pages == 1
        index.list_recent.assert_not_awaited()
        index.search_similar.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_semantic_then_text(self, service, index, make_issue):
        """Test 'bug crash' merges semantic {1,3} and text {3,5} as [1,3,5]."""
        index.search_similar.return_value = [
            make_issue(1, similarity=0.9),
            make_issue(3, similarity=0.7),
        ]
        index.search_text.return_value = [
            make_issue(3, similarity=0.5),
            make_issue(5, similarity=0.5),
        ]

        page = await service.search("bug crash")

        assert ids(page) == [1, 3, 5]
        assert page.total_count == 3
        assert page.results[1].similarity == 0.7
        index.find_by_numbers.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_query_browses_open_issues(self, service, index, make_issue):
        """Test an empty query lists open issues newest first."""
        index.list_recent.return_value = [make_issue(7), make_issue(5), make_issue(2)]

        page = await service.search("", state="open")

        assert ids(page) == [7, 5, 2]
        assert page.total_count == 3
        assert index.list_recent.await_args.kwargs["state"] == "open"
        index.search_similar.assert_not_awaited()
        index.search_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_partial_exact_match_falls_through(self, service, index, make_issue):
        """Test '#1 #2' with only #1 found keeps searching."""
        index.find_by_numbers.return_value = [make_issue(1)]
        index.list_recent.return_value = [make_issue(1), make_issue(9)]

        page = await service.search("#1 #2")

        assert ids(page) == [1, 9]
        index.list_recent.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_browse_pages_past_candidate_cap(self, service, index, settings, make_issue):
        """Test browsing reaches every page when the scope exceeds max_candidates."""
        total = settings.search.max_candidates + 500
        scope = [make_issue(i) for i in range(total, 0, -1)]

        async def list_recent(state="all", repository_ids=None, limit=None):
            return scope if limit is None else scope[:limit]

        index.list_recent.side_effect = list_recent

        page = await service.search("", state="open", page=150, page_size=10)

        assert page.total_count == total
        assert page.total_pages == math.ceil(total / 10)
        assert ids(page) == list(range(total - 1490, total - 1500, -1))
