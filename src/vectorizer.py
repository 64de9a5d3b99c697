"""
Vectorization module.
Computes embeddings for catalog movies in fixed-size batches and writes them
back to the store. Movies whose text is unchanged since their last embedding
by the same model are skipped.
"""

from dataclasses import dataclass, replace  # run summary, candidate records
from typing import List  # type hints

from loguru import logger  # console logger

from .models import Movie  # movie data class
from .embeddings import EmbeddingProvider, ProviderError  # vector source
from .vector_store import CatalogStore  # catalog destination
from .data_loader import build_searchable_text, compute_content_hash  # canonical text


@dataclass
class VectorizeResult:
	"""Counts from one vectorization run."""
	embedded: int = 0  # movies that received a new embedding
	skipped: int = 0  # movies already up to date
	failed: int = 0  # movies whose batch or vector the run rejected


def needs_embedding(movie: Movie, dimension: int = 0, model_name: str = '') -> bool:
	"""
	True when the movie has no embedding, a stale one, one of the wrong size,
	or one produced by a different model.
	"""
	if movie.embedding is None:
		return True
	if dimension and len(movie.embedding) != dimension:
		return True
	if model_name and movie.embedding_model != model_name:
		return True
	return movie.content_hash != compute_content_hash(movie)


def vectorize_catalog(
	store: CatalogStore,
	provider: EmbeddingProvider,
	batch_size: int = 16,
	force: bool = False,
) -> VectorizeResult:
	"""
	Embed every movie that needs it, one batch at a time.
	A batch the provider rejects, or a single vector the store rejects, is
	logged and counted; the run carries on and those movies keep their previous
	state, so the next run picks them up again.
	"""
	if batch_size < 1:
		raise ValueError("batch_size must be positive")

	if provider.dimension and store.embedding_dimension not in (None, provider.dimension):
		logger.warning(
			f"[Vectorizer] Provider dimension {provider.dimension} differs from catalog dimension "
			f"{store.embedding_dimension}; discarding stored embeddings"
		)
		store.reset_embeddings(provider.dimension)

	result = VectorizeResult()
	pending: List[Movie] = []
	for movie in store.scan_all():
		if force or needs_embedding(movie, provider.dimension, provider.model_name):
			pending.append(movie)
		else:
			result.skipped += 1

	logger.info(f"[Vectorizer] {len(pending)} movies to embed, {result.skipped} up to date (batch {batch_size})")

	for start in range(0, len(pending), batch_size):
		batch = pending[start:start + batch_size]
		texts = [build_searchable_text(movie) for movie in batch]
		try:
			vectors = provider.embed_batch(texts)
		except ProviderError as e:
			logger.warning(f"[Vectorizer] Batch starting at {start} failed ({len(batch)} movies): {e}")
			result.failed += len(batch)
			continue

		for movie, vector in zip(batch, vectors):
			# The stored record changes only once the store accepts the new vector
			candidate = replace(
				movie,
				embedding=[float(x) for x in vector],
				content_hash=compute_content_hash(movie),
				embedding_model=provider.model_name or None,
			)
			try:
				store.upsert(candidate)
			except ValueError as e:
				logger.warning(f"[Vectorizer] Rejected embedding for movie {movie.id}: {e}")
				result.failed += 1
				continue
			result.embedded += 1
		logger.debug(f"[Vectorizer] Embedded batch {start // batch_size + 1} ({len(batch)} movies)")

	logger.info(
		f"[Vectorizer] Done | embedded={result.embedded} skipped={result.skipped} failed={result.failed}"
	)
	return result
