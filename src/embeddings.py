"""
Embedding generation module.
Turns questions and movie text into vectors, either with a local
sentence-transformers model or with the OpenAI embeddings API.
"""

import numpy as np  # efficient numeric arrays
from typing import List, Optional  # list types
from sentence_transformers import SentenceTransformer  # pre-trained embedding model
from openai import OpenAI, OpenAIError  # official OpenAI SDK

from loguru import logger  # console logger


class ProviderError(Exception):
	"""Raised when an embedding cannot be produced (model, network or quota failure)."""
	pass


class EmbeddingProvider:
	"""
	Interface shared by every embedding backend.
	Subclasses implement embed_batch; embed is derived from it.
	"""

	dimension: int = 0  # length of produced vectors
	model_name: str = ''  # recorded with every stored embedding

	def embed(self, text: str) -> np.ndarray:
		"""Embed a single text; raises ProviderError on failure."""
		# Validate the text to avoid confusing errors downstream
		if not text or not text.strip():  # empty or whitespace only
			raise ProviderError("Cannot embed empty text")
		return self.embed_batch([text.strip()])[0]

	def embed_batch(self, texts: List[str]) -> np.ndarray:
		"""Embed several texts; returns an array of shape (len(texts), dimension)."""
		raise NotImplementedError


class SentenceTransformerEmbedder(EmbeddingProvider):
	"""
	Generates embeddings locally using sentence-transformers.
	"""

	def __init__(self, model_name: str = 'all-MiniLM-L6-v2', batch_size: int = 32):
		"""
		Load the sentence transformer model.
		- model_name selects which pre-trained model to load. We use a fast, accurate default.
		"""
		logger.info(f"[Embeddings] Loading embedding model: {model_name}")  # log model selection
		try:
			# Downloads on first use then caches locally
			self.model = SentenceTransformer(model_name)  # load model weights
		except Exception as e:
			raise ProviderError(f"Failed to load embedding model '{model_name}': {e}") from e
		self.model_name = model_name  # save model id
		self.batch_size = batch_size  # encode batch size
		# Ask the model for the dimensionality of produced vectors (e.g., 384)
		self.dimension = self.model.get_sentence_embedding_dimension()  # vector size
		logger.info(f"[Embeddings] Model ready. Embedding dimension: {self.dimension}")  # confirm

	def embed_batch(self, texts: List[str]) -> np.ndarray:
		# Guard: require at least one text
		if not texts:
			raise ProviderError("No texts provided for embedding")  # inform caller

		try:
			# Normalized rows so cosine similarity behaves like a dot product
			embeddings = self.model.encode(
				texts,  # input documents
				batch_size=self.batch_size,  # batch size for efficiency
				show_progress_bar=False,  # quiet inside interactive turns
				convert_to_numpy=True,  # return as NumPy array
				normalize_embeddings=True  # L2-normalize
			)
		except Exception as e:
			raise ProviderError(f"Embedding model '{self.model_name}' failed: {e}") from e

		return np.atleast_2d(embeddings)  # matrix of vectors


class OpenAIEmbedder(EmbeddingProvider):
	"""
	Generates embeddings through the OpenAI (or compatible) embeddings endpoint.
	"""

	def __init__(
		self,
		model_name: str = 'text-embedding-3-small',
		dimension: int = 1536,
		api_key: Optional[str] = None,
		base_url: Optional[str] = None,
		max_retries: int = 3,
		client=None,
	):
		self.model_name = model_name
		self.dimension = dimension
		# The client retries transient failures itself with exponential backoff
		self.client = client or OpenAI(api_key=api_key, base_url=base_url, max_retries=max_retries)
		logger.info(f"[Embeddings] Using OpenAI embeddings model: {model_name} (dim={dimension})")

	def embed_batch(self, texts: List[str]) -> np.ndarray:
		if not texts:
			raise ProviderError("No texts provided for embedding")

		try:
			response = self.client.embeddings.create(model=self.model_name, input=texts)
		except OpenAIError as e:
			raise ProviderError(f"OpenAI embeddings request failed: {e}") from e

		# The API returns one item per input, tagged with its input position
		ordered = sorted(response.data, key=lambda item: item.index)
		vectors = np.array([item.embedding for item in ordered], dtype=np.float32)
		if vectors.shape != (len(texts), self.dimension):
			raise ProviderError(
				f"Unexpected embedding shape {vectors.shape}; expected ({len(texts)}, {self.dimension})"
			)
		return vectors
