"""
Catalog store module using FAISS.
Holds the movie catalog, keeps a FAISS index over the embedded movies, and
answers nearest-neighbor and full-scan queries.
"""

import numpy as np  # numeric arrays
import faiss  # vector index
from typing import Dict, List, Optional, Set, Tuple  # type hints

from .models import Movie  # movie data class
from .data_loader import DataLoader, save_movies_to_jsonl  # JSONL persistence
from .similarity import DegenerateVector, DimensionMismatch, cosine_similarity  # exact rescoring
from .ranking import ranking_key  # deterministic ordering

from loguru import logger  # console logger


class CatalogStoreError(Exception):
	"""Raised when the catalog cannot be read or written."""
	pass


class NearestNeighborUnavailable(CatalogStoreError):
	"""Raised by stores that cannot run a native nearest-neighbor query."""
	pass


class CatalogStore:
	"""
	In-process movie catalog backed by a FAISS inner-product index.
	The index is rebuilt lazily after writes, so reads never see a half-built index.
	"""

	def __init__(self, embedding_dimension: Optional[int] = None, candidate_pool: int = 64):
		"""
		- embedding_dimension: expected vector length; inferred from the first embedded movie if None
		- candidate_pool: minimum number of FAISS candidates rescored exactly per query
		"""
		self.embedding_dimension = embedding_dimension  # vector length
		self.candidate_pool = candidate_pool  # oversampling for exact rescoring
		self.movies_map: Dict[str, Movie] = {}  # movie_id -> Movie
		self.index = None  # FAISS index over embedded movies
		self.movie_ids: List[str] = []  # index row -> movie_id
		self._dirty = True  # index must be rebuilt before the next query

	def upsert(self, movie: Movie):
		"""Insert or replace a movie; validates its embedding against the store dimension."""
		if not movie.id:
			raise ValueError("Movie id is required")
		if movie.embedding is not None:
			vector = np.asarray(movie.embedding, dtype=np.float64)
			if vector.ndim != 1 or vector.shape[0] == 0:
				raise ValueError(f"Movie {movie.id} embedding must be a non-empty vector")
			if not np.all(np.isfinite(vector)):
				raise ValueError(f"Movie {movie.id} embedding has non-finite components")
			if self.embedding_dimension is None:
				self.embedding_dimension = int(vector.shape[0])
				logger.info(f"[CatalogStore] Embedding dimension set to {self.embedding_dimension}")
			elif vector.shape[0] != self.embedding_dimension:
				raise ValueError(
					f"Movie {movie.id} embedding dimension ({vector.shape[0]}) doesn't match expected ({self.embedding_dimension})"
				)
		self.movies_map[movie.id] = movie
		self._dirty = True

	def upsert_many(self, movies: List[Movie]):
		for movie in movies:
			self.upsert(movie)
		logger.info(f"[CatalogStore] Upserted {len(movies)} movies | total={self.size()}")

	def reset_embeddings(self, embedding_dimension: Optional[int] = None):
		"""Drop every stored embedding, e.g. after switching embedding models."""
		for movie in self.movies_map.values():
			movie.embedding = None
			movie.content_hash = None
			movie.embedding_model = None
		self.embedding_dimension = embedding_dimension
		self._dirty = True

	def get(self, movie_id: str) -> Optional[Movie]:
		"""Return a Movie for a given ID, or None if not found."""
		return self.movies_map.get(movie_id)

	def size(self) -> int:
		"""Return the number of movies in the catalog."""
		return len(self.movies_map)

	def embedding_models(self) -> Set[str]:
		"""Names of the models that produced the stored embeddings (unrecorded ones excluded)."""
		return {
			m.embedding_model for m in self.movies_map.values()
			if m.embedding is not None and m.embedding_model
		}

	def scan_all(self) -> List[Movie]:
		"""Return every movie, ordered by id."""
		return [self.movies_map[movie_id] for movie_id in sorted(self.movies_map)]

	def _rebuild_index(self):
		"""Rebuild the FAISS index from the currently embedded movies."""
		embedded = [m for m in self.scan_all() if m.embedding is not None]
		self.movie_ids = [m.id for m in embedded]
		if not embedded:
			self.index = None
			self._dirty = False
			return

		# FAISS works on float32; unit rows make inner product equal cosine
		matrix = np.asarray([m.embedding for m in embedded], dtype=np.float32)
		faiss.normalize_L2(matrix)  # zero rows stay zero
		self.index = faiss.IndexFlatIP(self.embedding_dimension)
		self.index.add(matrix)
		self._dirty = False
		logger.debug(f"[CatalogStore] Rebuilt FAISS index with {self.index.ntotal} vectors")

	def query_nearest(self, embedding, k: int) -> List[Tuple[Movie, float]]:
		"""
		Return up to k (movie, cosine similarity) pairs, best first.
		FAISS narrows the candidates; each candidate is then rescored exactly so
		the ranking matches a brute-force scan of the same catalog.
		"""
		if self._dirty:
			self._rebuild_index()
		if self.index is None or self.index.ntotal == 0 or k <= 0:
			return []

		# Copy: normalize_L2 works in place and the caller's vector must stay intact
		query = np.array(embedding, dtype=np.float32).reshape(1, -1)
		if query.shape[1] != self.embedding_dimension:
			raise DimensionMismatch(
				f"Query embedding dimension ({query.shape[1]}) doesn't match expected ({self.embedding_dimension})"
			)
		if not np.any(query):
			raise DegenerateVector("Query embedding has zero magnitude")
		faiss.normalize_L2(query)

		pool = min(self.index.ntotal, max(k * 4, self.candidate_pool))
		_, indices = self.index.search(query, pool)

		results: List[Tuple[Movie, float]] = []
		for idx in indices[0]:
			if idx < 0:  # -1 indicates an empty slot
				continue
			movie = self.movies_map[self.movie_ids[idx]]
			try:
				score = cosine_similarity(embedding, movie.embedding)
			except DegenerateVector:
				logger.debug(f"[CatalogStore] Skipping degenerate embedding for movie {movie.id}")
				continue
			results.append((movie, score))

		results.sort(key=lambda pair: ranking_key(pair[0].id, pair[1]))
		return results[:k]

	def save_jsonl(self, filepath: str) -> int:
		"""Persist the catalog (embeddings included) as JSON Lines."""
		return save_movies_to_jsonl(self.scan_all(), filepath)

	@classmethod
	def load_jsonl(cls, filepath: str, embedding_dimension: Optional[int] = None) -> 'CatalogStore':
		"""Build a store from a JSONL catalog written by save_jsonl or the raw dataset."""
		store = cls(embedding_dimension=embedding_dimension)
		movies = DataLoader().load_movies_from_jsonl(filepath)
		for movie in movies:
			try:
				store.upsert(movie)
			except ValueError as e:
				logger.warning(f"[CatalogStore] Dropping embedding of movie {movie.id}: {e}")
				movie.embedding = None
				movie.content_hash = None
				movie.embedding_model = None
				store.upsert(movie)
		logger.info(f"[CatalogStore] Loaded {store.size()} movies from {filepath}")
		return store
