"""
Retrieval module.
Produces the ranked shortlist for a question: semantic search over movie
embeddings first, keyword matching over the whole catalog as the fallback.
"""

from typing import List, Optional  # type annotations

import numpy as np  # question embedding type

from .models import ShortlistEntry, STRATEGY_VECTOR  # core data classes
from .embeddings import EmbeddingProvider, ProviderError  # question embeddings
from .vector_store import CatalogStore, CatalogStoreError, NearestNeighborUnavailable  # catalog access
from .similarity import DegenerateVector, DimensionMismatch, rank_by_similarity  # brute-force ranking
from .keyword_matcher import rank_by_keywords  # lexical fallback
from .ranking import Ranker  # shortlist policy

from loguru import logger  # simple structured logger


class RetrievalUnavailable(Exception):
	"""Raised when neither retrieval path can read the catalog."""
	pass


class Retriever:
	"""
	Two-path retriever.
	- vector path: embed the question and ask the store for its nearest movies
	- keyword path: score every movie lexically; used when the vector path
	  fails or yields no candidate at or above min_similarity
	"""

	def __init__(
		self,
		store: CatalogStore,
		embedding_provider: Optional[EmbeddingProvider],
		top_k: int = 5,
		min_similarity: float = 0.2,
	):
		self.store = store  # catalog (read-only here)
		self.embedding_provider = embedding_provider  # None disables the vector path
		self.top_k = top_k  # default shortlist size
		self.ranker = Ranker(min_similarity=min_similarity)  # shared ordering policy

	def retrieve(self, question: str, k: Optional[int] = None) -> List[ShortlistEntry]:
		"""Return up to k shortlist entries, best first; empty when nothing matches."""
		k = self.top_k if k is None else k
		if k < 1:
			raise ValueError(f"k must be at least 1, got {k}")

		query_embedding = self._embed_question(question)
		if query_embedding is not None:
			entries = self._vector_path(query_embedding, k)
			if entries:
				logger.info(f"[Retriever] Vector path returned {len(entries)} movies")
				return entries
			logger.warning("[Retriever] Vector path produced no usable candidates; falling back to keywords")

		return self._keyword_path(question, k)

	def embeddings_compatible(self) -> bool:
		"""
		False when some stored embedding was recorded as coming from a model
		other than the provider's; vectors from different models are not comparable.
		"""
		if self.embedding_provider is None:
			return False
		model_name = self.embedding_provider.model_name
		if not model_name:
			return True
		return self.store.embedding_models() <= {model_name}

	def _embed_question(self, question: str) -> Optional[np.ndarray]:
		if self.embedding_provider is None:
			logger.debug("[Retriever] No embedding provider configured; using keyword path")
			return None
		if not self.embeddings_compatible():
			logger.warning(
				f"[Retriever] Catalog embeddings come from {sorted(self.store.embedding_models())}, "
				f"not '{self.embedding_provider.model_name}'; using keyword path until the catalog is re-vectorized"
			)
			return None
		try:
			return self.embedding_provider.embed(question)
		except ProviderError as e:
			logger.warning(f"[Retriever] Embedding provider failed, falling back to keywords: {e}")
			return None

	def _vector_path(self, query_embedding: np.ndarray, k: int) -> List[ShortlistEntry]:
		try:
			try:
				scored = self.store.query_nearest(query_embedding, k)
			except NearestNeighborUnavailable:
				logger.debug("[Retriever] Store has no native nearest-neighbor query; ranking locally")
				scored = rank_by_similarity(query_embedding, self.store.scan_all())
		except (DimensionMismatch, DegenerateVector) as e:
			logger.warning(f"[Retriever] Question embedding is not comparable with the catalog: {e}")
			return []
		except CatalogStoreError as e:
			logger.warning(f"[Retriever] Catalog query failed on the vector path: {e}")
			return []

		for movie, score in scored:
			logger.debug(f"[Retriever] Vector candidate | movie={movie.title} ({movie.id}) | sim={score:.3f}")
		return self.ranker.rank(scored, STRATEGY_VECTOR, k)

	def _keyword_path(self, question: str, k: int) -> List[ShortlistEntry]:
		try:
			movies = self.store.scan_all()
		except CatalogStoreError as e:
			raise RetrievalUnavailable(f"Catalog could not be scanned: {e}") from e

		entries = rank_by_keywords(question, movies, k)
		logger.info(f"[Retriever] Keyword path returned {len(entries)} of {len(movies)} movies")
		return entries
