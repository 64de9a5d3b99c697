"""
Build and persist the vectorized movie catalog.

This script:
1) Loads movies from data/movies.jsonl (or an existing vectorized catalog)
2) Generates embeddings in fixed-size batches
3) Saves the catalog, embeddings included, to models/catalog.jsonl

Usage:
    python -m scripts.build_index [--force]

Movies whose text has not changed since the last run keep their embeddings.
After running this once, the chat loop and the API load the saved catalog.
"""

import sys  # command-line flag
import time  # measure step timings
from pathlib import Path  # filesystem-safe paths

from loguru import logger  # console logging

from src.config import load_config, setup_logging  # settings
from src.data_loader import DataLoader  # dataset statistics
from src.assistant import build_embedding_provider  # configured embedder
from src.vector_store import CatalogStore  # catalog store
from src.vectorizer import vectorize_catalog  # batch embedding


def main():
	config = load_config()
	setup_logging(config.log_level)
	force = '--force' in sys.argv[1:]

	# Headline banner for visibility in console
	logger.info("=" * 60)
	logger.info("Build Vectorized Movie Catalog")
	logger.info("=" * 60)

	catalog_path = Path(config.catalog_path)  # output (and incremental input)

	# 1) Load data; reuse existing embeddings when the catalog was built before
	logger.info("[1/3] Loading movies...")
	source = catalog_path if catalog_path.exists() and not force else Path(config.movies_path)
	store = CatalogStore.load_jsonl(str(source))
	genres = DataLoader().get_all_genres(store.scan_all())
	logger.info(f"[OK] Loaded {store.size()} movies from {source} | {len(genres)} genres")

	# 2) Generate embeddings
	logger.info("[2/3] Generating embeddings...")
	provider = build_embedding_provider(config)
	if provider is None:
		logger.error("Embedding provider could not be initialized; aborting.")
		sys.exit(1)
	t0 = time.time()  # start timer
	result = vectorize_catalog(store, provider, batch_size=config.embedding.batch_size, force=force)
	logger.info(
		f"[OK] Embedded {result.embedded}, skipped {result.skipped}, failed {result.failed} in {time.time() - t0:.2f}s"
	)

	# 3) Save catalog
	logger.info("[3/3] Saving catalog...")
	store.save_jsonl(str(catalog_path))
	logger.info(f"[OK] Saved to {catalog_path}")

	if result.failed:
		logger.warning("Some movies are still missing embeddings; re-run to retry them.")
		sys.exit(2)
	logger.info("All done! The chat loop and API will load this catalog.")


if __name__ == '__main__':
	main()  # invoke builder
