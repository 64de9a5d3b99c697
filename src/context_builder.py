"""
Context assembly module.
Turns a ranked shortlist into the bounded text context handed to the answer
synthesizer, and decides whether the question is a direct lookup or a summary.
"""

from typing import List  # type hints

from .models import (  # core data classes and labels
	Movie,
	ShortlistEntry,
	MODE_DIRECT,
	MODE_SUMMARY,
	STRATEGY_KEYWORD,
	STRATEGY_VECTOR,
)


def summarize_movie(rank: int, entry: ShortlistEntry, max_reviews: int = 2) -> str:
	"""Compact multi-line summary of one shortlisted movie."""
	movie: Movie = entry.movie
	year = f" ({movie.year})" if movie.year else ""
	genre = ", ".join(movie.genre) if movie.genre else "unknown"
	lines = [
		f"[{rank}] {movie.title}{year} | Genre: {genre} | Match: {entry.strategy} (score {entry.score:.2f})",
	]
	if movie.actors:
		lines.append(f"Starring: {', '.join(movie.actors[:5])}")  # top billing only
	if movie.description:
		lines.append(f"Description: {movie.description}")

	# Highest-rated reviews first; reviewer name keeps the order stable
	top_reviews = sorted(movie.reviews, key=lambda r: (-r.rating, r.reviewer))[:max_reviews]
	if top_reviews:
		lines.append("Reviews:")
		for review in top_reviews:
			lines.append(f"- {review.reviewer} ({review.rating:g}/5): {review.review}")
	return "\n".join(lines)


def build_context(entries: List[ShortlistEntry], max_chars: int = 4000, max_reviews: int = 2) -> str:
	"""
	Concatenate movie summaries in ranked order up to max_chars.
	Lower-ranked movies are dropped first; a lone top movie that is too long is cut.
	"""
	if max_chars < 1:
		raise ValueError("max_chars must be positive")

	blocks: List[str] = []
	used = 0
	for rank, entry in enumerate(entries, start=1):
		block = summarize_movie(rank, entry, max_reviews=max_reviews)
		separator = 2 if blocks else 0  # blank line between blocks
		if used + separator + len(block) > max_chars:
			if not blocks:
				blocks.append(block[:max_chars])
			break
		blocks.append(block)
		used += separator + len(block)
	return "\n\n".join(blocks)


def choose_mode(
	entries: List[ShortlistEntry],
	direct_vector_threshold: float = 0.6,
	direct_keyword_threshold: float = 6.0,
) -> str:
	"""
	"direct" when one movie clearly answers the question: it is the only one
	returned, or the only one at or above its strategy's confidence threshold.
	Anything else (including an empty shortlist) is a "summary".
	"""
	if len(entries) == 1:  # only candidate, answer about it
		return MODE_DIRECT

	thresholds = {
		STRATEGY_VECTOR: direct_vector_threshold,
		STRATEGY_KEYWORD: direct_keyword_threshold,
	}
	confident = [e for e in entries if e.score >= thresholds[e.strategy]]
	return MODE_DIRECT if len(confident) == 1 else MODE_SUMMARY
