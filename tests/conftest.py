"""
Shared fixtures: an in-process bag-of-words embedder standing in for the
sentence-transformers model, and a ten-movie catalog embedded with it.
"""

import re
from typing import List
from unittest.mock import MagicMock

import numpy as np
import pytest

from src.models import Movie, Review
from src.embeddings import EmbeddingProvider, ProviderError
from src.vector_store import CatalogStore
from src.retriever import Retriever
from src.synthesizer import AnswerSynthesizer

VOCAB = [
	"heist", "robbery", "thieves", "vault", "fast",
	"space", "station", "comedian", "ghost", "haunted",
	"love", "war", "fox", "desert", "hacker", "casino",
]


class BagOfWordsEmbedder(EmbeddingProvider):
	"""Counts vocabulary words; similar wording gives similar vectors."""

	dimension = len(VOCAB)
	model_name = "bag-of-words"

	def __init__(self):
		self.calls: List[List[str]] = []

	def embed_batch(self, texts):
		self.calls.append(list(texts))
		rows = []
		for text in texts:
			tokens = re.findall(r"[a-z]+", text.lower())
			rows.append([float(tokens.count(word)) for word in VOCAB])
		return np.array(rows, dtype=np.float32)


class ReversedBagEmbedder(BagOfWordsEmbedder):
	"""Same size as BagOfWordsEmbedder but a different vector space."""

	model_name = "reversed-bag-of-words"

	def embed_batch(self, texts):
		return super().embed_batch(texts)[:, ::-1].copy()


class FailingEmbedder(EmbeddingProvider):
	"""Always fails, like an unreachable embeddings endpoint."""

	dimension = len(VOCAB)

	def embed_batch(self, texts):
		raise ProviderError("embeddings endpoint unreachable")


def make_movie(movie_id, title, description, genre, year=2000, actors=None, reviews=None):
	return Movie(
		id=movie_id,
		title=title,
		description=description,
		genre=list(genre),
		year=year,
		actors=list(actors or []),
		reviews=list(reviews or []),
	)


def embed_movies(movies, embedder):
	vectors = embedder.embed_batch([f"{m.description} {' '.join(m.genre)}" for m in movies])
	for movie, vector in zip(movies, vectors):
		movie.embedding = [float(x) for x in vector]
	return movies


@pytest.fixture
def catalog_movies():
	movies = [
		make_movie("m01", "The Vault Job", "A crew of thieves plans a fast-paced heist on an underground bank vault.", ["Crime", "Heist"], 2016,
			actors=["Marta Reyes", "Daniel Okafor"],
			reviews=[Review("cinephile88", 5, "Slick and tense."), Review("popcornjoe", 4, "Great final act.")]),
		make_movie("m02", "Starlight Drift", "Two engineers stranded on a failing space station.", ["Science Fiction"], 2019),
		make_movie("m03", "Laugh Track", "A failing comedian becomes the host of a talk show.", ["Comedy"], 2012),
		make_movie("m04", "The Hollow House", "A family moves into a farmhouse haunted by a ghost.", ["Horror"], 2008),
		make_movie("m05", "Paper Hearts", "Two bookshop owners fall in love over a summer of letters.", ["Romance"], 2015),
		make_movie("m06", "Iron Meridian", "A tank crew crosses a frozen front line in the final winter of the war.", ["War"], 2001),
		make_movie("m07", "Clockwork Casino", "A retired safecracker returns for one last casino robbery.", ["Crime", "Heist"], 2021,
			reviews=[Review("popcornjoe", 4, "Stylish heist with a twist.")]),
		make_movie("m08", "Little Comet", "A young fox follows a falling star across the mountains.", ["Animation"], 2018),
		make_movie("m09", "Dust and Gold", "A bounty hunter escorts an outlaw across the desert.", ["Western"], 1994),
		make_movie("m10", "Signal Lost", "A hacker uncovers a streaming company recording its users.", ["Thriller"], 2023),
	]
	return embed_movies(movies, BagOfWordsEmbedder())


@pytest.fixture
def store(catalog_movies):
	catalog = CatalogStore()
	catalog.upsert_many(catalog_movies)
	return catalog


@pytest.fixture
def embedder():
	return BagOfWordsEmbedder()


@pytest.fixture
def retriever(store, embedder):
	return Retriever(store=store, embedding_provider=embedder, top_k=5, min_similarity=0.2)


@pytest.fixture
def fake_synthesizer():
	"""A MagicMock standing in for AnswerSynthesizer."""
	synth = MagicMock(spec=AnswerSynthesizer)
	synth.complete.return_value = "Here is what I found."
	return synth
