"""
Services - Embedder

Dense query embeddings using fastembed, cached per query text.
"""

from typing import List, Optional

from issue_search.config import get_settings
from issue_search.services.cache_service import CacheService


class Embedder:
    """Generates dense embeddings for search queries using a local model."""

    def __init__(self, settings=None, cache: Optional[CacheService] = None):
        self.settings = settings or get_settings()
        self.cache = cache or CacheService(self.settings)
        self._dense_model = None

    @property
    def dense_model(self):
        """Lazy load dense embedding model."""
        if self._dense_model is None:
            from fastembed import TextEmbedding
            cache_dir = str(self.settings.embedding.cache_dir)
            self._dense_model = TextEmbedding(
                model_name=self.settings.embedding.model_dense,
                cache_dir=cache_dir,
            )
        return self._dense_model

    def embed_query(self, query: str) -> List[float]:
        """
        Generate the embedding for a search query.

        Args:
            query: Search query text

        Returns:
            Dense vector (768 dims for bge-base)
        """
        key = f"embedding:{self.settings.embedding.model_dense}:{query}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        embeddings = list(self.dense_model.query_embed(query))
        vector = embeddings[0].tolist()
        self.cache.set(key, vector)
        return vector
