"""
Configuration module.
Reads application settings from environment variables (and a local .env file)
into typed dataclasses, and configures loguru.
"""

import os  # environment access
import sys  # stderr sink for logging
from dataclasses import dataclass, field  # typed config sections
from typing import Optional  # optional secrets

from dotenv import load_dotenv  # .env support for local runs
from loguru import logger  # console logger

EMBEDDING_BACKENDS = ('sentence-transformers', 'openai')
LLM_BACKENDS = ('openai', 'azure')


@dataclass
class EmbeddingConfig:
	"""Which model turns text into vectors."""
	backend: str = 'sentence-transformers'
	model_name: str = 'all-MiniLM-L6-v2'
	dimension: int = 1536  # only used by the openai backend
	batch_size: int = 16
	api_key: Optional[str] = None
	base_url: Optional[str] = None


@dataclass
class LLMConfig:
	"""Which chat model writes the answers."""
	backend: str = 'openai'
	model: str = 'gpt-4o-mini'
	temperature: float = 0.2
	max_tokens: int = 500
	timeout: float = 60.0
	max_retries: int = 3
	api_key: Optional[str] = None
	base_url: Optional[str] = None
	azure_endpoint: Optional[str] = None
	azure_api_version: str = '2024-06-01'


@dataclass
class RetrievalConfig:
	"""Shortlist size, confidence thresholds and context budget."""
	top_k: int = 5
	min_similarity: float = 0.2
	direct_vector_threshold: float = 0.6
	direct_keyword_threshold: float = 6.0
	max_context_chars: int = 4000
	max_reviews: int = 2


@dataclass
class AppConfig:
	"""Main application configuration."""
	log_level: str = 'INFO'
	movies_path: str = 'data/movies.jsonl'  # raw dataset
	catalog_path: str = 'models/catalog.jsonl'  # vectorized catalog
	embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
	llm: LLMConfig = field(default_factory=LLMConfig)
	retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)


def _choice(name: str, default: str, allowed) -> str:
	value = os.getenv(name, default).strip().lower()
	if value not in allowed:
		raise ValueError(f"{name} must be one of {', '.join(allowed)}, got '{value}'")
	return value


def _positive_int(name: str, default: int) -> int:
	value = int(os.getenv(name, str(default)))
	if value < 1:
		raise ValueError(f"{name} must be a positive integer, got {value}")
	return value


def load_config() -> AppConfig:
	"""Load configuration from environment variables with defaults."""
	load_dotenv()

	embedding = EmbeddingConfig(
		backend=_choice('EMBEDDING_BACKEND', 'sentence-transformers', EMBEDDING_BACKENDS),
		model_name=os.getenv('EMBEDDING_MODEL', 'all-MiniLM-L6-v2'),
		dimension=_positive_int('EMBEDDING_DIMENSION', 1536),
		batch_size=_positive_int('EMBEDDING_BATCH_SIZE', 16),
		api_key=os.getenv('OPENAI_API_KEY'),
		base_url=os.getenv('OPENAI_BASE_URL'),
	)

	llm_backend = _choice('LLM_BACKEND', 'openai', LLM_BACKENDS)
	llm = LLMConfig(
		backend=llm_backend,
		model=os.getenv('LLM_MODEL', 'gpt-4o-mini'),
		temperature=float(os.getenv('LLM_TEMPERATURE', '0.2')),
		max_tokens=_positive_int('LLM_MAX_TOKENS', 500),
		timeout=float(os.getenv('LLM_TIMEOUT', '60')),
		max_retries=int(os.getenv('LLM_MAX_RETRIES', '3')),
		api_key=os.getenv('AZURE_OPENAI_API_KEY') if llm_backend == 'azure' else os.getenv('OPENAI_API_KEY'),
		base_url=os.getenv('OPENAI_BASE_URL'),
		azure_endpoint=os.getenv('AZURE_OPENAI_ENDPOINT'),
		azure_api_version=os.getenv('AZURE_OPENAI_API_VERSION', '2024-06-01'),
	)
	if llm.backend == 'azure' and not llm.azure_endpoint:
		raise ValueError("AZURE_OPENAI_ENDPOINT is required when LLM_BACKEND=azure")

	retrieval = RetrievalConfig(
		top_k=_positive_int('RETRIEVAL_TOP_K', 5),
		min_similarity=float(os.getenv('RETRIEVAL_MIN_SIMILARITY', '0.2')),
		direct_vector_threshold=float(os.getenv('DIRECT_VECTOR_THRESHOLD', '0.6')),
		direct_keyword_threshold=float(os.getenv('DIRECT_KEYWORD_THRESHOLD', '6.0')),
		max_context_chars=_positive_int('MAX_CONTEXT_CHARS', 4000),
		max_reviews=int(os.getenv('MAX_REVIEWS_PER_MOVIE', '2')),
	)

	return AppConfig(
		log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
		movies_path=os.getenv('MOVIES_PATH', 'data/movies.jsonl'),
		catalog_path=os.getenv('CATALOG_PATH', 'models/catalog.jsonl'),
		embedding=embedding,
		llm=llm,
		retrieval=retrieval,
	)


def setup_logging(level: str = 'INFO'):
	"""Replace loguru's default sink with a stderr sink at the given level."""
	logger.remove()
	logger.add(sys.stderr, level=level.upper())
