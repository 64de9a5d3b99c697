"""
Interactive question loop over the movie catalog.

Usage:
    python -m scripts.chat

Type a question and press Enter; 'quit' or 'exit' (or Ctrl-D) stops the loop.
"""

from loguru import logger  # console logging

from src.config import load_config, setup_logging  # settings
from src.assistant import create_assistant  # per-turn pipeline

EXIT_WORDS = ("quit", "exit", "q")


def run_loop(assistant, read=input, write=print):
	"""Ask, answer, repeat. A failed turn never ends the loop."""
	write("Movie Q&A (type 'quit' or 'exit' to stop)")
	while True:
		try:
			question = read("You: ").strip()
		except (EOFError, KeyboardInterrupt):
			write("\nGoodbye!")
			break

		if question.lower() in EXIT_WORDS:
			write("Goodbye!")
			break
		if not question:
			continue

		try:
			answer = assistant.answer_question(question)
		except KeyboardInterrupt:
			# Abandon this turn only
			write("\n(cancelled)")
			continue
		write(f"Assistant: {answer}\n")


def main():
	config = load_config()
	setup_logging(config.log_level)
	logger.info("[Chat] Starting movie assistant...")
	assistant = create_assistant(config)
	run_loop(assistant)


if __name__ == '__main__':
	main()
