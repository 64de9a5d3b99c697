"""
Similarity module.
Cosine similarity between embedding vectors, plus a brute-force ranking helper
used when the catalog store cannot run its own nearest-neighbor search.
"""

from typing import List, Sequence, Tuple, Union  # type hints

import numpy as np  # vector math

from .models import Movie  # movie data class
from .ranking import ranking_key  # deterministic ordering

VectorLike = Union[Sequence[float], np.ndarray]


class DimensionMismatch(ValueError):
	"""Raised when two vectors do not share the same non-zero length."""
	pass


class DegenerateVector(ValueError):
	"""Raised when a vector has zero magnitude or non-finite components."""
	pass


def _as_vector(values: VectorLike) -> np.ndarray:
	vec = np.asarray(values, dtype=np.float64)  # float64 regardless of stored precision
	if vec.ndim != 1:
		vec = vec.reshape(-1)
	return vec


def _unit(vec: np.ndarray) -> np.ndarray:
	if not np.all(np.isfinite(vec)):
		raise DegenerateVector("Vector contains non-finite components")
	# Rescale by the largest component first so the squared sum cannot overflow
	scale = np.max(np.abs(vec))
	if scale == 0.0:
		raise DegenerateVector("Vector has zero magnitude")
	scaled = vec / scale
	return scaled / np.sqrt(np.dot(scaled, scaled))


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
	"""
	Return the cosine similarity of two equal-length vectors in [-1, 1].

	Raises DimensionMismatch for unequal or empty vectors and DegenerateVector
	when either side has zero magnitude.
	"""
	va = _as_vector(a)
	vb = _as_vector(b)
	if va.shape[0] == 0 or va.shape[0] != vb.shape[0]:
		raise DimensionMismatch(f"Cannot compare vectors of length {va.shape[0]} and {vb.shape[0]}")

	score = float(np.dot(_unit(va), _unit(vb)))
	return max(-1.0, min(1.0, score))  # rounding can overshoot by an ulp


def rank_by_similarity(query: VectorLike, movies: List[Movie]) -> List[Tuple[Movie, float]]:
	"""
	Score every embedded movie against the query vector.
	Movies without an embedding or with a degenerate one are skipped.
	Results are ordered by score descending, then by movie id.
	"""
	scored: List[Tuple[Movie, float]] = []
	for movie in movies:
		if movie.embedding is None:  # not vectorized yet
			continue
		try:
			scored.append((movie, cosine_similarity(query, movie.embedding)))
		except DegenerateVector:
			continue
	scored.sort(key=lambda pair: ranking_key(pair[0].id, pair[1]))
	return scored
