"""
Ranking module.
Turns scored candidates from either retrieval path into an ordered, bounded shortlist.
"""

from typing import Iterable, List, Tuple  # type hints

from .models import Movie, ShortlistEntry, STRATEGY_KEYWORD, STRATEGY_VECTOR  # core data classes


def ranking_key(movie_id: str, score: float) -> Tuple[float, str]:
	"""Higher score first; equal scores fall back to the smaller movie id."""
	return (-score, movie_id)  # sorts ascending


class Ranker:
	"""
	Applies the shortlist policy shared by both retrieval strategies:
	- vector candidates must reach min_similarity to count as usable
	- keyword candidates must have a positive score
	- ties are broken by the lexicographically smaller movie id
	"""

	def __init__(self, min_similarity: float = 0.0):
		self.min_similarity = min_similarity

	def is_usable(self, score: float, strategy: str) -> bool:
		if strategy == STRATEGY_VECTOR:
			return score >= self.min_similarity
		if strategy == STRATEGY_KEYWORD:
			return score > 0.0
		raise ValueError(f"Unknown retrieval strategy: {strategy}")

	def rank(
		self,
		scored: Iterable[Tuple[Movie, float]],
		strategy: str,
		k: int,
	) -> List[ShortlistEntry]:
		"""Filter unusable candidates, order them and keep the best k."""
		entries = [
			ShortlistEntry(movie=movie, score=float(score), strategy=strategy)
			for movie, score in scored
			if self.is_usable(score, strategy)
		]
		entries.sort(key=lambda e: ranking_key(e.movie.id, e.score))
		return entries[:k]
