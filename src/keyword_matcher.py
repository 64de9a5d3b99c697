"""
Keyword matching module.
Scores a movie against a question by lexical overlap; used as the retrieval
fallback when semantic search is unavailable or low-confidence.
"""

import re  # regex tokenizer
from typing import Dict, List, Set  # type annotations

from .models import Movie, ShortlistEntry, STRATEGY_KEYWORD  # core data classes
from .ranking import Ranker  # shared shortlist policy

# Word tokens after lowercasing ("fast-paced" -> "fast", "paced")
TOKEN_RE = re.compile(r"[a-z0-9]+")

# Filler words that would otherwise match nearly every record
STOPWORDS: Set[str] = {
	"a", "an", "the", "and", "or", "of", "in", "on", "at", "to", "for", "by",
	"with", "about", "from", "is", "are", "was", "were", "be", "it", "its",
	"this", "that", "what", "which", "who", "whom", "how", "why", "when", "where",
	"do", "does", "did", "any", "some", "me", "my", "i", "you", "there", "s",
	"movie", "movies", "film", "films", "recommend", "tell", "show", "find",
}

# A question token scores the weight of the strongest field it appears in
FIELD_WEIGHTS: Dict[str, float] = {
	"title": 3.0,
	"genre": 3.0,
	"actors": 2.0,
	"description": 2.0,
	"reviews": 1.0,
}


def tokenize(text: str) -> Set[str]:
	"""Return the distinct, lowercased, non-stopword tokens in text."""
	if not text:
		return set()
	return {t for t in TOKEN_RE.findall(text.lower()) if t not in STOPWORDS}


def record_token_weights(movie: Movie) -> Dict[str, float]:
	"""Map every searchable token of a movie to its highest field weight."""
	fields = {
		"title": movie.title,
		"genre": " ".join(movie.genre or []),
		"actors": " ".join(movie.actors or []),
		"description": movie.description,
		"reviews": " ".join(r.review for r in (movie.reviews or [])),
	}
	weights: Dict[str, float] = {}
	for name, text in fields.items():
		weight = FIELD_WEIGHTS[name]
		for token in tokenize(text):
			if weight > weights.get(token, 0.0):
				weights[token] = weight
	return weights


def keyword_score(question: str, movie: Movie) -> float:
	"""
	Sum, over distinct question tokens found in the movie, of the weight of the
	field they were found in. Zero means no overlap at all.
	"""
	weights = record_token_weights(movie)
	return sum(weights.get(token, 0.0) for token in tokenize(question))


def rank_by_keywords(question: str, movies: List[Movie], k: int) -> List[ShortlistEntry]:
	"""Score every movie, drop zero-score ones, and keep the top k."""
	scored = [(movie, keyword_score(question, movie)) for movie in movies]
	return Ranker().rank(scored, STRATEGY_KEYWORD, k)
