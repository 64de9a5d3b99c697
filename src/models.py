"""
Data models for the Film Q&A Engine.
Defines the core data structures used throughout the system.
"""

from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
from typing import List, Optional  # lists and optional values

# Names of the two retrieval strategies recorded on every shortlist entry
STRATEGY_VECTOR = 'vector'
STRATEGY_KEYWORD = 'keyword'

# Framing labels sent to the answer synthesizer
MODE_DIRECT = 'direct'
MODE_SUMMARY = 'summary'

# Bounds for review ratings
MIN_RATING = 1.0
MAX_RATING = 5.0


@dataclass
class Review:
	"""A single user review; owned by its parent Movie."""
	reviewer: str  # who wrote the review
	rating: float  # score on a 1-5 scale
	review: str  # free text body


@dataclass
class Movie:
	"""
	Represents a single movie and all the information we know about it.
	These fields are used for retrieval and for building the answer context.
	"""
	id: str  # unique identifier of the movie (string for stable ordering)
	title: str  # movie title as it should be shown to the user
	description: str  # short synopsis
	genre: List[str]  # canonical genre tags (e.g., ["Crime", "Thriller"])
	year: int  # release year as a number (e.g., 1999)
	actors: List[str] = field(default_factory=list)  # billing order preserved
	reviews: List[Review] = field(default_factory=list)  # user reviews
	embedding: Optional[List[float]] = None  # present only after vectorization
	content_hash: Optional[str] = None  # hash of the text the embedding was built from
	embedding_model: Optional[str] = None  # model that produced the embedding


@dataclass
class ShortlistEntry:
	"""
	A query-scoped pairing of a movie with its relevance score and the
	strategy ("vector" or "keyword") that produced it.
	"""
	movie: Movie
	score: float
	strategy: str


@dataclass
class AskResult:
	"""Everything produced while answering one question."""
	question: str
	answer: str
	shortlist: List[ShortlistEntry] = field(default_factory=list)
	mode: str = MODE_SUMMARY
	context: str = ''
