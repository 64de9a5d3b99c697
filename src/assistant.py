"""
Assistant module.
Runs one conversation turn: retrieve a shortlist, assemble the context, ask the
language model, and always come back with printable text.
"""

from pathlib import Path  # catalog file checks
from typing import List, Optional  # type annotations

from .models import AskResult, ShortlistEntry  # core data classes
from .config import AppConfig  # typed settings
from .embeddings import EmbeddingProvider, OpenAIEmbedder, ProviderError, SentenceTransformerEmbedder  # vectors
from .vector_store import CatalogStore  # movie catalog
from .retriever import Retriever, RetrievalUnavailable  # two-path retrieval
from .context_builder import build_context, choose_mode  # prompt context
from .synthesizer import AnswerSynthesizer, SynthesizerError  # answer generation

from loguru import logger  # simple structured logger

EMPTY_QUESTION_MESSAGE = "Please ask a question about the movie catalog."
UNAVAILABLE_MESSAGE = "Sorry, no results could be retrieved right now. Please try again later."
NO_ANSWER_MESSAGE = "I don't have enough information to answer that from the movie catalog."


class MovieAssistant:
	"""
	Per-turn question answering over the movie catalog.
	Holds no state between turns; every call to ask() stands alone.
	"""

	def __init__(
		self,
		retriever: Retriever,
		synthesizer: AnswerSynthesizer,
		top_k: int = 5,
		max_context_chars: int = 4000,
		max_reviews: int = 2,
		direct_vector_threshold: float = 0.6,
		direct_keyword_threshold: float = 6.0,
	):
		self.retriever = retriever
		self.synthesizer = synthesizer
		self.top_k = top_k
		self.max_context_chars = max_context_chars
		self.max_reviews = max_reviews
		self.direct_vector_threshold = direct_vector_threshold
		self.direct_keyword_threshold = direct_keyword_threshold

	def search(self, question: str, top_k: Optional[int] = None) -> List[ShortlistEntry]:
		"""Shortlist only; raises RetrievalUnavailable when the catalog is unreadable."""
		return self.retriever.retrieve(question, self.top_k if top_k is None else top_k)

	def ask(self, question: str) -> AskResult:
		"""
		Retrieve, assemble, generate.
		Raises RetrievalUnavailable or SynthesizerError; answer_question() absorbs them.
		"""
		if not question or not question.strip():
			raise ValueError("Question cannot be empty")
		question = question.strip()
		return self.generate(question, self.search(question))

	def generate(self, question: str, shortlist: List[ShortlistEntry]) -> AskResult:
		"""Assemble the context for an existing shortlist and ask the model."""
		context = build_context(shortlist, max_chars=self.max_context_chars, max_reviews=self.max_reviews)
		mode = choose_mode(
			shortlist,
			direct_vector_threshold=self.direct_vector_threshold,
			direct_keyword_threshold=self.direct_keyword_threshold,
		)
		strategy = shortlist[0].strategy if shortlist else 'none'
		logger.info(f"[Assistant] {len(shortlist)} movies via {strategy} path | mode={mode} | context={len(context)} chars")

		answer = self.synthesizer.complete(question, context, mode)
		return AskResult(question=question, answer=answer, shortlist=shortlist, mode=mode, context=context)

	def answer_question(self, question: str) -> str:
		"""Answer one question; every failure becomes a user-facing message."""
		if not question or not question.strip():
			return EMPTY_QUESTION_MESSAGE
		question = question.strip()
		try:
			shortlist = self.search(question)
		except RetrievalUnavailable as e:
			logger.error(f"[Assistant] Retrieval unavailable: {e}")
			return UNAVAILABLE_MESSAGE
		except Exception:
			logger.exception("[Assistant] Unexpected failure while retrieving")
			return UNAVAILABLE_MESSAGE

		try:
			return self.generate(question, shortlist).answer
		except SynthesizerError as e:
			logger.error(f"[Assistant] Answer generation failed: {e}")
			return self.fallback_answer(shortlist)
		except Exception:
			logger.exception("[Assistant] Unexpected failure while answering")
			return self.fallback_answer(shortlist)

	def fallback_answer(self, shortlist: List[ShortlistEntry]) -> str:
		"""Plain listing of the shortlist when the language model is unreachable."""
		if not shortlist:
			return NO_ANSWER_MESSAGE
		titles = ", ".join(
			f"{e.movie.title} ({e.movie.year})" if e.movie.year else e.movie.title
			for e in shortlist
		)
		return f"I couldn't write a full answer right now, but these movies look relevant: {titles}."


def build_embedding_provider(config: AppConfig) -> Optional[EmbeddingProvider]:
	"""Create the configured embedding backend; None means keyword-only retrieval."""
	emb = config.embedding
	try:
		if emb.backend == 'openai':
			return OpenAIEmbedder(
				model_name=emb.model_name,
				dimension=emb.dimension,
				api_key=emb.api_key,
				base_url=emb.base_url,
			)
		return SentenceTransformerEmbedder(emb.model_name, batch_size=emb.batch_size)
	except ProviderError as e:
		logger.warning(f"[Assistant] Embedding provider unavailable, keyword search only: {e}")
		return None


def build_synthesizer(config: AppConfig) -> AnswerSynthesizer:
	llm = config.llm
	options = dict(model=llm.model, temperature=llm.temperature, max_tokens=llm.max_tokens)
	if llm.backend == 'azure':
		return AnswerSynthesizer.for_azure(
			azure_endpoint=llm.azure_endpoint,
			api_key=llm.api_key,
			api_version=llm.azure_api_version,
			timeout=llm.timeout,
			max_retries=llm.max_retries,
			**options,
		)
	return AnswerSynthesizer.for_openai(
		api_key=llm.api_key,
		base_url=llm.base_url,
		timeout=llm.timeout,
		max_retries=llm.max_retries,
		**options,
	)


def load_catalog(config: AppConfig) -> CatalogStore:
	"""Prefer the vectorized catalog; fall back to the raw dataset without embeddings."""
	catalog_path = Path(config.catalog_path)
	if catalog_path.exists():
		logger.info(f"[Assistant] Loading vectorized catalog from '{catalog_path}'")
		return CatalogStore.load_jsonl(str(catalog_path))
	logger.warning(f"[Assistant] No vectorized catalog at '{catalog_path}'; loading raw movies (keyword search only until build_index runs)")
	return CatalogStore.load_jsonl(config.movies_path)


def create_assistant(config: AppConfig, store: Optional[CatalogStore] = None) -> MovieAssistant:
	"""Wire store, embedding provider, retriever and synthesizer from config."""
	rc = config.retrieval
	store = store if store is not None else load_catalog(config)
	retriever = Retriever(
		store=store,
		embedding_provider=build_embedding_provider(config),
		top_k=rc.top_k,
		min_similarity=rc.min_similarity,
	)
	if retriever.embedding_provider is not None and not retriever.embeddings_compatible():
		logger.warning(
			f"[Assistant] Catalog was vectorized with {sorted(store.embedding_models())} but "
			f"'{config.embedding.model_name}' is configured; run scripts.build_index to re-vectorize"
		)
	return MovieAssistant(
		retriever=retriever,
		synthesizer=build_synthesizer(config),
		top_k=rc.top_k,
		max_context_chars=rc.max_context_chars,
		max_reviews=rc.max_reviews,
		direct_vector_threshold=rc.direct_vector_threshold,
		direct_keyword_threshold=rc.direct_keyword_threshold,
	)
