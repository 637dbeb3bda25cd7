"""
Services - Issue Index

Read access to the Qdrant collection holding synchronized GitHub issues.

Every point id is the issue store id. Payload layout:
    number, title, body, is_open, url, repository_id,
    repository_full_name, labels, updated_at (RFC 3339)
"""

from datetime import datetime, timezone
from typing import AbstractSet, Any, List, Optional, Sequence

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    FieldCondition,
    Filter,
    MatchAny,
    MatchText,
    MatchValue,
    PayloadSchemaType,
)

from issue_search.config import get_settings
from issue_search.schemas.search import IssueSearchResult

OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class QdrantIssueIndex:
    """Lookup, similarity, keyword and listing queries over indexed issues."""

    DENSE_VECTOR_NAME = "dense"
    SCROLL_BATCH_SIZE = 256

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self._client = None
        self._indexes_ready = False

    @property
    def client(self) -> AsyncQdrantClient:
        """Lazy load Qdrant client."""
        if self._client is None:
            self._client = AsyncQdrantClient(
                host=self.settings.qdrant.host,
                port=self.settings.qdrant.port,
                api_key=self.settings.qdrant.api_key,
            )
        return self._client

    @property
    def collection(self) -> str:
        return self.settings.qdrant.collection

    async def ensure_payload_indexes(self) -> None:
        """Create the payload indexes the search filters rely on (idempotent)."""
        if self._indexes_ready:
            return

        for field, schema in [
            ("number", PayloadSchemaType.INTEGER),
            ("is_open", PayloadSchemaType.BOOL),
            ("repository_id", PayloadSchemaType.INTEGER),
            ("title", PayloadSchemaType.TEXT),
            ("body", PayloadSchemaType.TEXT),
            ("updated_at", PayloadSchemaType.DATETIME),
        ]:
            await self.client.create_payload_index(
                collection_name=self.collection,
                field_name=field,
                field_schema=schema,
            )
        self._indexes_ready = True

    async def find_by_numbers(
        self,
        numbers: AbstractSet[int],
        state: str = "all",
        repository_ids: Optional[Sequence[int]] = None,
        repository_name: Optional[str] = None,
        limit: int = 100,
    ) -> List[IssueSearchResult]:
        """
        Find issues by their GitHub numbers.

        Args:
            numbers: Issue numbers to look up
            state: "all", "open" or "closed"
            repository_ids: Only include issues from these repositories
            repository_name: Case-insensitive fragment of "owner/repo"
            limit: Maximum points to fetch

        Returns:
            Matching issues flagged as exact matches
        """
        if not numbers:
            return []

        conditions = self._scope_conditions(state, repository_ids)
        conditions.append(
            FieldCondition(key="number", match=MatchAny(any=sorted(numbers)))
        )

        points = await self._scroll(Filter(must=conditions), limit)

        issues = [
            self._to_result(p.id, p.payload, 1.0, is_exact_match=True)
            for p in points
        ]
        if repository_name:
            needle = repository_name.lower()
            issues = [i for i in issues if needle in i.repository_name.lower()]
        return issues

    async def search_similar(
        self,
        vector: List[float],
        state: str = "all",
        repository_ids: Optional[Sequence[int]] = None,
        limit: int = 100,
        min_similarity: float = 0.0,
    ) -> List[IssueSearchResult]:
        """Issues ranked by cosine similarity to the query vector."""
        await self.ensure_payload_indexes()

        response = await self.client.query_points(
            collection_name=self.collection,
            query=vector,
            using=self.DENSE_VECTOR_NAME,
            query_filter=self._build_filter(state, repository_ids),
            limit=limit,
            score_threshold=min_similarity,
            with_payload=True,
        )
        return [self._to_result(p.id, p.payload, p.score) for p in response.points]

    async def search_text(
        self,
        text: str,
        state: str = "all",
        repository_ids: Optional[Sequence[int]] = None,
        limit: Optional[int] = 100,
        similarity: float = 0.5,
    ) -> List[IssueSearchResult]:
        """Issues whose title or body contains the text, newest first."""
        if not text or not text.strip():
            return []

        scope = self._scope_conditions(state, repository_ids)
        keyword_filter = Filter(
            must=scope or None,
            should=[
                FieldCondition(key="title", match=MatchText(text=text)),
                FieldCondition(key="body", match=MatchText(text=text)),
            ],
        )

        points = self._newest_first(await self._scroll(keyword_filter, limit))
        return [self._to_result(p.id, p.payload, similarity) for p in points]

    async def list_recent(
        self,
        state: str = "all",
        repository_ids: Optional[Sequence[int]] = None,
        limit: Optional[int] = None,
    ) -> List[IssueSearchResult]:
        """
        Issues in scope, most recently updated first.

        Without a limit the whole scope is listed, batch by batch.
        """
        points = await self._scroll(self._build_filter(state, repository_ids), limit)
        return [self._to_result(p.id, p.payload, 1.0) for p in self._newest_first(points)]

    async def _scroll(self, scroll_filter: Optional[Filter], limit: Optional[int]) -> list:
        """Follow scroll offsets until the filter is exhausted or limit is reached."""
        await self.ensure_payload_indexes()

        points = []
        offset = None
        while limit is None or len(points) < limit:
            batch_size = self.SCROLL_BATCH_SIZE
            if limit is not None:
                batch_size = min(batch_size, limit - len(points))

            batch, offset = await self.client.scroll(
                collection_name=self.collection,
                scroll_filter=scroll_filter,
                limit=batch_size,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )
            points.extend(batch)
            if offset is None:
                break
        return points

    @staticmethod
    def _newest_first(points: list) -> list:
        def updated_at(point):
            value = (point.payload or {}).get("updated_at")
            if not value:
                return OLDEST
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed

        return sorted(points, key=lambda p: (updated_at(p), p.id), reverse=True)

    def _scope_conditions(
        self,
        state: str,
        repository_ids: Optional[Sequence[int]],
    ) -> List[FieldCondition]:
        conditions = []
        if state == "open":
            conditions.append(
                FieldCondition(key="is_open", match=MatchValue(value=True))
            )
        elif state == "closed":
            conditions.append(
                FieldCondition(key="is_open", match=MatchValue(value=False))
            )
        if repository_ids:
            conditions.append(
                FieldCondition(
                    key="repository_id",
                    match=MatchAny(any=list(repository_ids)),
                )
            )
        return conditions

    def _build_filter(
        self,
        state: str,
        repository_ids: Optional[Sequence[int]],
    ) -> Optional[Filter]:
        conditions = self._scope_conditions(state, repository_ids)
        return Filter(must=conditions) if conditions else None

    @staticmethod
    def _to_result(
        point_id: Any,
        payload: Optional[dict],
        similarity: float,
        is_exact_match: bool = False,
    ) -> IssueSearchResult:
        """Convert a Qdrant point to an IssueSearchResult."""
        payload = payload or {}
        return IssueSearchResult(
            id=int(point_id),
            number=payload["number"],
            title=payload.get("title", ""),
            is_open=payload.get("is_open", False),
            url=payload.get("url", ""),
            repository_name=payload.get("repository_full_name", ""),
            # Cosine scores can dip below zero
            similarity=min(max(float(similarity), 0.0), 1.0),
            is_exact_match=is_exact_match,
            labels=payload.get("labels", []),
        )
