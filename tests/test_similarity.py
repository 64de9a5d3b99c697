"""
Tests for cosine similarity and brute-force similarity ranking.
"""

import math

import numpy as np
import pytest

from src.similarity import DegenerateVector, DimensionMismatch, cosine_similarity, rank_by_similarity
from tests.conftest import make_movie


def test_symmetric():
	a = [0.3, -1.2, 4.0, 0.5]
	b = [2.0, 0.1, -0.7, 1.5]
	assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_self_similarity_is_one():
	a = np.array([0.25, 3.0, -2.0, 7.5])
	assert cosine_similarity(a, a) == pytest.approx(1.0)


def test_opposite_and_orthogonal():
	assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)
	assert cosine_similarity([1.0, 0.0], [0.0, 5.0]) == pytest.approx(0.0)


def test_magnitude_does_not_matter():
	assert cosine_similarity([1.0, 2.0, 3.0], [10.0, 20.0, 30.0]) == pytest.approx(1.0)


def test_huge_components_do_not_overflow():
	a = [1e200, 1e200, 0.0]
	b = [1e200, 0.0, 1e200]
	score = cosine_similarity(a, b)
	assert math.isfinite(score)
	assert score == pytest.approx(0.5)


def test_different_lengths_raise_dimension_mismatch():
	with pytest.raises(DimensionMismatch):
		cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0])


def test_empty_vectors_raise_dimension_mismatch():
	with pytest.raises(DimensionMismatch):
		cosine_similarity([], [])


def test_zero_vector_raises_degenerate():
	with pytest.raises(DegenerateVector):
		cosine_similarity([0.0, 0.0, 0.0], [1.0, 2.0, 3.0])
	with pytest.raises(DegenerateVector):
		cosine_similarity([1.0, 2.0, 3.0], [0.0, 0.0, 0.0])


def test_non_finite_vector_raises_degenerate():
	with pytest.raises(DegenerateVector):
		cosine_similarity([float("nan"), 1.0], [1.0, 1.0])


def test_rank_by_similarity_skips_unusable_movies():
	good = make_movie("b", "Good", "", [])
	good.embedding = [1.0, 0.0]
	better = make_movie("a", "Better", "", [])
	better.embedding = [1.0, 0.1]
	zero = make_movie("c", "Zero", "", [])
	zero.embedding = [0.0, 0.0]
	missing = make_movie("d", "Missing", "", [])

	ranked = rank_by_similarity([1.0, 0.0], [zero, good, missing, better])

	assert [m.id for m, _ in ranked] == ["b", "a"]
	assert ranked[0][1] == pytest.approx(1.0)


def test_rank_by_similarity_breaks_ties_by_id():
	first = make_movie("z9", "Same", "", [])
	second = make_movie("a1", "Same", "", [])
	first.embedding = second.embedding = [0.5, 0.5]

	ranked = rank_by_similarity([1.0, 1.0], [first, second])

	assert [m.id for m, _ in ranked] == ["a1", "z9"]
