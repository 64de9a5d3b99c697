"""
Tests for the two-path retriever: vector search first, keyword fallback second.
"""

import numpy as np
import pytest

from src.models import STRATEGY_KEYWORD, STRATEGY_VECTOR
from src.keyword_matcher import rank_by_keywords
from src.retriever import RetrievalUnavailable, Retriever
from src.vector_store import CatalogStore, CatalogStoreError, NearestNeighborUnavailable
from src.embeddings import EmbeddingProvider
from src.vectorizer import vectorize_catalog
from tests.conftest import BagOfWordsEmbedder, FailingEmbedder, ReversedBagEmbedder, make_movie

HEIST_QUESTION = "a fast-paced heist movie"


class ScanOnlyStore(CatalogStore):
	"""A store without a native nearest-neighbor query."""

	def query_nearest(self, embedding, k):
		raise NearestNeighborUnavailable("no vector index")


class BrokenStore(CatalogStore):
	"""A store that cannot be reached at all."""

	def query_nearest(self, embedding, k):
		raise CatalogStoreError("connection refused")

	def scan_all(self):
		raise CatalogStoreError("connection refused")


class WrongSizeEmbedder(EmbeddingProvider):
	dimension = 3

	def embed_batch(self, texts):
		return np.ones((len(texts), 3), dtype=np.float32)


def _summary(entries):
	return [(e.movie.id, round(e.score, 6), e.strategy) for e in entries]


def test_vector_path_finds_heist_movie_first(retriever):
	entries = retriever.retrieve(HEIST_QUESTION, k=5)

	assert entries
	assert entries[0].movie.id == "m01"
	assert all(e.strategy == STRATEGY_VECTOR for e in entries)
	assert [e.movie.id for e in entries] == ["m01", "m07"]


def test_provider_failure_falls_back_to_keywords(store):
	retriever = Retriever(store=store, embedding_provider=FailingEmbedder(), top_k=5)

	entries = retriever.retrieve(HEIST_QUESTION, k=5)

	assert entries
	assert all(e.strategy == STRATEGY_KEYWORD for e in entries)
	ids = [e.movie.id for e in entries]
	assert "m01" in ids and "m07" in ids


def test_fallback_matches_keyword_only_ranking(store):
	retriever = Retriever(store=store, embedding_provider=FailingEmbedder())

	for question in (HEIST_QUESTION, "haunted ghost house", "love letters", "nothing matches zzz"):
		expected = rank_by_keywords(question, store.scan_all(), 3)
		assert _summary(retriever.retrieve(question, k=3)) == _summary(expected)


def test_no_provider_means_keyword_path(store):
	retriever = Retriever(store=store, embedding_provider=None)
	entries = retriever.retrieve(HEIST_QUESTION, k=2)
	assert [e.strategy for e in entries] == [STRATEGY_KEYWORD, STRATEGY_KEYWORD]


def test_retrieve_is_deterministic(retriever):
	first = retriever.retrieve(HEIST_QUESTION, k=5)
	second = retriever.retrieve(HEIST_QUESTION, k=5)
	assert _summary(first) == _summary(second)


def test_low_confidence_vector_results_fall_back(store, embedder):
	retriever = Retriever(store=store, embedding_provider=embedder, min_similarity=0.95)

	entries = retriever.retrieve(HEIST_QUESTION, k=5)

	assert entries[0].movie.id == "m01"
	assert entries[0].strategy == STRATEGY_KEYWORD


def test_degenerate_question_embedding_falls_back(retriever):
	# No vocabulary words: the question embeds to an all-zero vector
	entries = retriever.retrieve("secondhand bookshop letters", k=5)

	assert [e.strategy for e in entries] == [STRATEGY_KEYWORD]
	assert entries[0].movie.id == "m05"


def test_dimension_mismatch_falls_back(store):
	retriever = Retriever(store=store, embedding_provider=WrongSizeEmbedder())
	entries = retriever.retrieve(HEIST_QUESTION, k=5)
	assert entries and all(e.strategy == STRATEGY_KEYWORD for e in entries)


def test_scan_only_store_gives_same_ranking(catalog_movies, embedder):
	native = CatalogStore()
	native.upsert_many(catalog_movies)
	scan_only = ScanOnlyStore()
	scan_only.upsert_many(catalog_movies)

	for question in (HEIST_QUESTION, "ghost war love", "casino robbery heist"):
		a = Retriever(store=native, embedding_provider=embedder, min_similarity=0.0).retrieve(question, k=10)
		b = Retriever(store=scan_only, embedding_provider=embedder, min_similarity=0.0).retrieve(question, k=10)
		assert _summary(a) == _summary(b)


def test_vector_ties_prefer_smaller_id(embedder):
	store = CatalogStore()
	for movie_id in ("m9", "m2", "m5"):
		movie = make_movie(movie_id, "Twin", "heist", ["Heist"])
		movie.embedding = [float(x) for x in embedder.embed("heist heist")]
		store.upsert(movie)

	entries = Retriever(store=store, embedding_provider=embedder).retrieve("heist", k=3)

	assert [e.movie.id for e in entries] == ["m2", "m5", "m9"]


def test_movies_without_embeddings_are_skipped_by_vector_path(catalog_movies, embedder):
	store = CatalogStore()
	store.upsert_many(catalog_movies)
	store.upsert(make_movie("m00", "Heist Heist Heist", "heist fast heist", ["Heist"]))

	entries = Retriever(store=store, embedding_provider=embedder).retrieve(HEIST_QUESTION, k=5)

	assert entries[0].strategy == STRATEGY_VECTOR
	assert "m00" not in [e.movie.id for e in entries]


def test_empty_catalog_returns_empty_shortlist(embedder):
	retriever = Retriever(store=CatalogStore(), embedding_provider=embedder)
	assert retriever.retrieve(HEIST_QUESTION, k=5) == []


def test_unreachable_store_raises_retrieval_unavailable(catalog_movies, embedder):
	store = BrokenStore()
	store.upsert_many(catalog_movies)
	retriever = Retriever(store=store, embedding_provider=embedder)

	with pytest.raises(RetrievalUnavailable):
		retriever.retrieve(HEIST_QUESTION, k=5)


def test_unreachable_store_and_failing_provider_raise_retrieval_unavailable():
	retriever = Retriever(store=BrokenStore(), embedding_provider=FailingEmbedder())
	with pytest.raises(RetrievalUnavailable):
		retriever.retrieve(HEIST_QUESTION, k=5)


def test_k_must_be_positive(retriever):
	with pytest.raises(ValueError):
		retriever.retrieve(HEIST_QUESTION, k=0)


def test_default_k_comes_from_constructor(store):
	retriever = Retriever(store=store, embedding_provider=BagOfWordsEmbedder(), top_k=1)
	assert len(retriever.retrieve(HEIST_QUESTION)) == 1


def test_catalog_from_another_model_uses_keyword_path(store):
	vectorize_catalog(store, BagOfWordsEmbedder())
	other = ReversedBagEmbedder()
	retriever = Retriever(store=store, embedding_provider=other)

	entries = retriever.retrieve(HEIST_QUESTION, k=5)

	assert not retriever.embeddings_compatible()
	assert entries and all(e.strategy == STRATEGY_KEYWORD for e in entries)
	assert other.calls == []


def test_catalog_from_same_model_uses_vector_path(store, embedder):
	vectorize_catalog(store, BagOfWordsEmbedder())
	retriever = Retriever(store=store, embedding_provider=embedder)

	assert retriever.embeddings_compatible()
	assert retriever.retrieve(HEIST_QUESTION, k=5)[0].strategy == STRATEGY_VECTOR
