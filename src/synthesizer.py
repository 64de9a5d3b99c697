"""
Answer synthesis module.
Sends the question, the assembled movie context and the framing mode to an
OpenAI or Azure OpenAI chat model and returns its plain-text answer.
"""

from typing import Optional  # type hints

from openai import AzureOpenAI, OpenAI, OpenAIError  # official OpenAI SDK

from loguru import logger  # console logger

from .models import MODE_DIRECT, MODE_SUMMARY  # framing labels

NO_CONTEXT_NOTE = "No matching movies were found in the catalog."

SYSTEM_PROMPT = (
	"You are a helpful assistant that answers questions about a movie catalog. "
	"Answer ONLY from the movie records in the context. "
	"If the context doesn't contain the answer, say that you don't have enough information. "
	"Reply in plain text without markdown."
)

MODE_INSTRUCTIONS = {
	MODE_DIRECT: "The question is about one specific movie. Answer it directly from that movie's record.",
	MODE_SUMMARY: "Several movies may be relevant. Summarize across them and name the titles you rely on.",
}


class SynthesizerError(Exception):
	"""Raised when the language model call fails or returns nothing."""
	pass


def build_prompt(question: str, context: str, mode: str) -> str:
	"""Combine mode instruction, context, and question into the user message."""
	if mode not in MODE_INSTRUCTIONS:
		raise ValueError(f"Unknown answer mode: {mode}")
	body = context.strip() if context and context.strip() else NO_CONTEXT_NOTE
	return f"""{MODE_INSTRUCTIONS[mode]}

Context:
---
{body}
---

Question: {question}"""


class AnswerSynthesizer:
	"""Generate grounded answers with a chat completion model."""

	def __init__(
		self,
		client,
		model: str = "gpt-4o-mini",
		temperature: float = 0.2,
		max_tokens: int = 500,
		system_prompt: Optional[str] = None,
	):
		self.client = client
		self.model = model
		self.temperature = temperature
		self.max_tokens = max_tokens
		self.system_prompt = system_prompt or SYSTEM_PROMPT

	@classmethod
	def for_openai(
		cls,
		api_key: Optional[str] = None,
		base_url: Optional[str] = None,
		timeout: float = 60.0,
		max_retries: int = 3,
		**kwargs,
	) -> 'AnswerSynthesizer':
		client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=max_retries)
		return cls(client, **kwargs)

	@classmethod
	def for_azure(
		cls,
		azure_endpoint: str,
		api_key: Optional[str] = None,
		api_version: str = "2024-06-01",
		timeout: float = 60.0,
		max_retries: int = 3,
		**kwargs,
	) -> 'AnswerSynthesizer':
		# On Azure the model argument names the deployment
		client = AzureOpenAI(
			azure_endpoint=azure_endpoint,
			api_key=api_key,
			api_version=api_version,
			timeout=timeout,
			max_retries=max_retries,
		)
		return cls(client, **kwargs)

	def complete(self, question: str, context: str, mode: str) -> str:
		"""Return the model's answer for the question given the context."""
		prompt = build_prompt(question, context, mode)
		logger.debug(f"[Synthesizer] Sending {len(prompt)} prompt chars to {self.model} (mode={mode})")
		try:
			response = self.client.chat.completions.create(
				model=self.model,
				messages=[
					{"role": "system", "content": self.system_prompt},
					{"role": "user", "content": prompt},
				],
				temperature=self.temperature,
				max_tokens=self.max_tokens,
			)
		except OpenAIError as e:
			raise SynthesizerError(f"Chat completion failed: {e}") from e

		if not response.choices:
			raise SynthesizerError("Chat completion returned no choices")
		answer = (response.choices[0].message.content or "").strip()
		if not answer:
			raise SynthesizerError("Chat completion returned an empty answer")
		return answer
