"""
Services Module - Business Logic Layer

Provides issue search orchestration, the Qdrant issue index, query embedding
and caching.
"""

from issue_search.services.search_service import IssueSearchService
from issue_search.services.issue_index import QdrantIssueIndex
from issue_search.services.embedder import Embedder
from issue_search.services.cache_service import CacheService

__all__ = [
    "IssueSearchService",
    "QdrantIssueIndex",
    "Embedder",
    "CacheService",
]
