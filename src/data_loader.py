"""
Data loading and preprocessing module.
Handles loading movies from JSONL, cleaning/normalizing the data, and writing
the catalog (with embeddings) back to disk.
"""

import hashlib  # content hashes for embedding freshness
import json  # read/write JSON lines
import math  # finite checks on stored embeddings
from typing import Dict, Iterable, List, Optional  # type hints
from pathlib import Path  # filesystem-safe paths

from .models import Movie, Review, MIN_RATING, MAX_RATING  # structured movie record

from loguru import logger  # console logger


def build_searchable_text(movie: Movie) -> str:
	"""
	Create the canonical weighted text that embeddings are computed from.
	Weights: title (3x), genres (2x), actors (1x), description (1x), reviews (1x).
	"""
	parts = []  # accumulate text segments

	# Title weighted most because users often ask about it by name
	if movie.title:
		parts.extend([movie.title] * 3)

	# Repeat each genre to give it moderate influence
	for genre in movie.genre:
		parts.extend([genre] * 2)

	# Actors help people-based questions
	if movie.actors:
		parts.append(', '.join(movie.actors))

	# Description gives broader context and keywords
	if movie.description:
		parts.append(movie.description)

	# Review text carries opinions ("hilarious", "slow") people ask about
	for review in movie.reviews:
		if review.review:
			parts.append(review.review)

	return ' '.join(parts)


def compute_content_hash(movie: Movie) -> str:
	"""Hash of the canonical text; changes whenever a text field changes."""
	return hashlib.sha256(build_searchable_text(movie).encode('utf-8')).hexdigest()[:16]


def movie_to_dict(movie: Movie) -> Dict:
	"""Serialize a Movie to a plain JSON-compatible dict."""
	data = {
		'id': movie.id,
		'title': movie.title,
		'description': movie.description,
		'genre': list(movie.genre),
		'year': movie.year,
		'actors': list(movie.actors),
		'reviews': [
			{'reviewer': r.reviewer, 'rating': r.rating, 'review': r.review}
			for r in movie.reviews
		],
	}
	if movie.embedding is not None:
		data['embedding'] = [float(x) for x in movie.embedding]
		data['content_hash'] = movie.content_hash
		data['embedding_model'] = movie.embedding_model
	return data


def save_movies_to_jsonl(movies: Iterable[Movie], filepath: str) -> int:
	"""Write movies as JSON Lines; returns the number written."""
	filepath = Path(filepath)
	filepath.parent.mkdir(parents=True, exist_ok=True)
	count = 0
	with open(filepath, 'w', encoding='utf-8') as f:
		for movie in movies:
			f.write(json.dumps(movie_to_dict(movie), ensure_ascii=False) + '\n')
			count += 1
	logger.info(f"[DataLoader] Wrote {count} movies to {filepath}")
	return count


class DataLoader:
	"""
	Handles loading and preprocessing of movie data.
	"""

	# Genre synonym mapping: common dataset spellings → single standard name
	GENRE_SYNONYMS = {
		'sci-fi': 'Science Fiction',  # map hyphenated to canonical
		'sci fi': 'Science Fiction',  # map spaced form
		'science-fiction': 'Science Fiction',  # map with dash
		'science fiction': 'Science Fiction',  # map with space
		'scifi': 'Science Fiction',  # common variant
		'horror': 'Horror',
		'thriller': 'Thriller',
		'comedy': 'Comedy',
		'drama': 'Drama',
		'action': 'Action',
		'adventure': 'Adventure',
		'romance': 'Romance',
		'romantic': 'Romance',
		'fantasy': 'Fantasy',
		'mystery': 'Mystery',
		'crime': 'Crime',
		'heist': 'Heist',
		'war': 'War',
		'western': 'Western',
		'animation': 'Animation',
		'animated': 'Animation',
		'documentary': 'Documentary',
		'family': 'Family',
		'musical': 'Musical',
		'biography': 'Biography',
		'biographical': 'Biography',
		'sport': 'Sport',
		'sports': 'Sport',
	}

	def __init__(self):
		"""Initialize the data loader and expose the synonyms mapping."""
		self.genre_synonyms = self.GENRE_SYNONYMS  # store mapping for reuse

	def load_movies_from_jsonl(self, filepath: str) -> List[Movie]:
		"""
		Load movies from a JSON Lines (JSONL) file where each line is one JSON object.
		Returns a list of Movie objects.
		"""
		movies = []  # accumulator for parsed Movie objects
		filepath = Path(filepath)  # normalize path

		# Validate the file presence early to give clear error messages
		if not filepath.exists():
			raise FileNotFoundError(f"Movie data file not found: {filepath}")

		logger.info(f"[DataLoader] Loading movies from {filepath}...")  # log action

		# Open the file and read line-by-line
		with open(filepath, 'r', encoding='utf-8') as f:
			for line_num, line in enumerate(f, 1):  # keep track of line number for diagnostics
				if not line.strip():
					continue  # tolerate blank lines
				try:
					data = json.loads(line.strip())  # parse JSON object per line
					movie = self.parse_movie(data)  # convert dict -> Movie
					movies.append(movie)  # collect
				except json.JSONDecodeError as e:
					logger.warning(f"[DataLoader] Skipping invalid JSON at line {line_num}: {e}")  # malformed line
					continue  # move on
				except (ValueError, TypeError) as e:
					logger.warning(f"[DataLoader] Error parsing movie at line {line_num}: {e}")  # bad record
					continue  # move on

		logger.info(f"[DataLoader] Successfully loaded {len(movies)} movies.")  # summary
		return movies  # return list

	def parse_movie(self, data: Dict) -> Movie:
		"""
		Convert a raw dictionary (from file) into a strongly-typed Movie object.
		Performs normalization and safe defaults; raises ValueError on unusable records.
		"""
		movie_id = str(data.get('id', '')).strip()
		if not movie_id:
			raise ValueError("Movie record has no id")

		title = self._clean_text(data.get('title'))
		if not title:
			raise ValueError(f"Movie {movie_id} has no title")

		# Accept either 'genre' or the older 'genres' key, list or comma-separated
		genres = self._parse_comma_separated(data.get('genre', data.get('genres', [])))
		actors = self._parse_comma_separated(data.get('actors', []))

		movie = Movie(
			id=movie_id,
			title=title,
			description=self._clean_text(data.get('description', data.get('overview'))),
			genre=[self._normalize_genre(g) for g in genres if g],
			year=int(data.get('year', 0)) if data.get('year') else 0,  # int year or 0
			actors=actors,
			reviews=self._parse_reviews(movie_id, data.get('reviews') or []),
		)

		embedding = self._parse_embedding(movie_id, data.get('embedding'))
		if embedding is not None:
			movie.embedding = embedding
			movie.content_hash = data.get('content_hash')
			movie.embedding_model = data.get('embedding_model')
		return movie

	def _parse_reviews(self, movie_id: str, raw_reviews: List) -> List[Review]:
		reviews = []
		for raw in raw_reviews:
			if not isinstance(raw, dict):
				logger.warning(f"[DataLoader] Movie {movie_id}: ignoring malformed review {raw!r}")
				continue
			try:
				rating = float(raw.get('rating'))
			except (TypeError, ValueError):
				logger.warning(f"[DataLoader] Movie {movie_id}: review without numeric rating ignored")
				continue
			if not (MIN_RATING <= rating <= MAX_RATING):
				logger.warning(f"[DataLoader] Movie {movie_id}: rating {rating} outside {MIN_RATING}-{MAX_RATING} ignored")
				continue
			reviews.append(Review(
				reviewer=self._clean_text(raw.get('reviewer')) or 'anonymous',
				rating=rating,
				review=self._clean_text(raw.get('review')),
			))
		return reviews

	def _parse_embedding(self, movie_id: str, raw) -> Optional[List[float]]:
		if raw is None:
			return None
		if not isinstance(raw, list) or not raw:
			raise ValueError(f"Movie {movie_id} has a malformed embedding")
		values = [float(x) for x in raw]
		if not all(math.isfinite(x) for x in values):
			raise ValueError(f"Movie {movie_id} embedding has non-finite components")
		return values

	def _parse_comma_separated(self, value) -> List[str]:
		"""
		Normalize a value that may be None, a list, or a comma-separated string
		into a list of clean strings.
		"""
		if value is None:  # missing field
			return []  # treat as empty list
		if isinstance(value, list):  # already a list
			return [str(item).strip() for item in value if item]  # clean each
		if isinstance(value, str):  # comma-separated string
			return [item.strip() for item in value.split(',') if item.strip()]  # split/trim
		return []  # any other type becomes empty

	def _clean_text(self, text) -> str:
		"""Collapse whitespace; handle None safely by returning empty string."""
		if not text:  # None or empty
			return ''  # normalize to empty
		return ' '.join(str(text).split())

	def _normalize_genre(self, genre: str) -> str:
		"""
		Map a raw genre to its canonical form using synonyms; fall back to Title Case.
		"""
		genre_lower = genre.strip().lower()  # prepare for lookup

		# If present in synonyms, return canonical value
		if genre_lower in self.genre_synonyms:
			return self.genre_synonyms[genre_lower]

		# Otherwise title-case the input to standardize (e.g., "war drama" → "War Drama")
		return genre.strip().title()

	def get_all_genres(self, movies: List[Movie]) -> List[str]:
		"""Return a sorted list of all unique genres in the dataset."""
		genres = set()  # unique genres
		for movie in movies:  # iterate
			genres.update(movie.genre)
		return sorted(genres)  # sorted output
