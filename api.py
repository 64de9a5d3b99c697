"""
FastAPI server exposing the movie question-answering API.
Endpoints:
- GET /health: basic health check
- GET /search?q=...&top_k=5: returns the ranked shortlist for a question
- GET /ask?q=...: returns a grounded answer plus the movies it was based on

Startup loads the vectorized catalog (models/catalog.jsonl) if available,
otherwise the raw dataset with keyword-only retrieval.
"""

# Import standard libraries for timing
import time  # measure startup and request latencies
from typing import List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for response models
from fastapi import FastAPI, HTTPException, Query  # FastAPI primitives
from pydantic import BaseModel  # response schema definitions

# Import our internal modules for configuration and question answering
from src.config import load_config, setup_logging  # settings
from src.assistant import MovieAssistant, create_assistant  # core pipeline
from src.models import ShortlistEntry, MODE_SUMMARY  # shortlist items
from src.retriever import RetrievalUnavailable  # total catalog failure
from src.synthesizer import SynthesizerError  # language model failure

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

# Instantiate the FastAPI application with metadata
app = FastAPI(title="Film Q&A API", version="1.0.0")  # web app

# Globals that hold the assistant instance and measured startup time
ASSISTANT: Optional[MovieAssistant] = None  # will point to the initialized assistant
STARTUP_TIME_S: float = 0.0  # measures how long startup took


# Pydantic model that describes the shape of a single movie in responses
class MovieOut(BaseModel):
	id: str  # unique id
	title: str  # human-readable title
	year: int  # release year
	genre: List[str]  # list of genres
	actors: List[str]  # subset of actors for brevity
	description: Optional[str] = None  # short synopsis snippet


# Pydantic model for a single shortlist item
class ShortlistItem(BaseModel):
	movie: MovieOut  # movie metadata
	score: float  # relevance score
	strategy: str  # "vector" or "keyword"


class SearchResponse(BaseModel):
	query: str  # original question
	top_k: int  # number of results requested
	elapsed_ms: float  # server-side retrieval time in ms
	results: List[ShortlistItem]  # ranked items


class AskResponse(BaseModel):
	query: str  # original question
	answer: str  # plain-text answer
	mode: str  # "direct" or "summary"
	elapsed_ms: float  # server-side time in ms
	sources: List[ShortlistItem]  # movies the answer was grounded on


def _to_item(entry: ShortlistEntry) -> ShortlistItem:
	m = entry.movie
	return ShortlistItem(
		movie=MovieOut(
			id=m.id,
			title=m.title,
			year=m.year,
			genre=m.genre,
			actors=m.actors[:5],
			description=m.description[:350] if m.description else None,
		),
		score=round(entry.score, 3),
		strategy=entry.strategy,
	)


# FastAPI startup hook to initialize the assistant once
@app.on_event("startup")
async def startup_event():
	"""Load configuration and catalog, then build the assistant."""
	global ASSISTANT, STARTUP_TIME_S  # refer to module-level globals
	start = time.time()  # start timer for startup latency
	config = load_config()
	setup_logging(config.log_level)
	logger.info("[API] Startup: loading catalog and initializing assistant...")  # log intent
	ASSISTANT = create_assistant(config)
	STARTUP_TIME_S = time.time() - start  # elapsed seconds
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s.")  # summary log


# Simple health endpoint for readiness checks
@app.get("/health")
async def health():
	"""Return minimal health info for liveness/readiness probes."""
	return {
		"status": "ok",  # constant indicator
		"assistant_ready": ASSISTANT is not None,  # True if assistant initialized
		"startup_seconds": round(STARTUP_TIME_S, 2)  # startup latency
	}


@app.get("/search", response_model=SearchResponse)
def search(q: str = Query(..., min_length=1, description="Natural language movie question"), top_k: int = Query(5, ge=1, le=50)):
	"""Return the ranked shortlist without generating an answer."""
	if ASSISTANT is None:  # assistant must be ready to serve
		logger.warning("[API] Search requested but assistant not initialized")  # guard log
		raise HTTPException(status_code=503, detail="Assistant is not ready")

	start = time.time()  # start timer
	try:
		entries = ASSISTANT.search(q, top_k=top_k)
	except RetrievalUnavailable as e:
		logger.error(f"[API] /search retrieval unavailable: {e}")
		raise HTTPException(status_code=503, detail="No results could be retrieved")
	elapsed_ms = (time.time() - start) * 1000  # compute ms
	logger.info(f"[API] /search served {len(entries)} results in {elapsed_ms:.2f} ms")  # summary
	return SearchResponse(query=q, top_k=top_k, elapsed_ms=round(elapsed_ms, 2), results=[_to_item(e) for e in entries])


@app.get("/ask", response_model=AskResponse)
def ask(q: str = Query(..., min_length=1, description="Natural language movie question")):
	"""Answer the question from the catalog."""
	if ASSISTANT is None:
		logger.warning("[API] Ask requested but assistant not initialized")
		raise HTTPException(status_code=503, detail="Assistant is not ready")
	question = q.strip()
	if not question:
		raise HTTPException(status_code=422, detail="Question cannot be empty")

	start = time.time()
	try:
		entries = ASSISTANT.search(question)
	except RetrievalUnavailable as e:
		logger.error(f"[API] /ask retrieval unavailable: {e}")
		raise HTTPException(status_code=503, detail="No results could be retrieved")

	try:
		result = ASSISTANT.generate(question, entries)
		answer, mode = result.answer, result.mode
	except SynthesizerError as e:
		# Keep the request alive: the answer degrades, the sources are still useful
		logger.error(f"[API] /ask generation failed: {e}")
		answer, mode = ASSISTANT.fallback_answer(entries), MODE_SUMMARY

	elapsed_ms = (time.time() - start) * 1000
	logger.info(f"[API] /ask answered in {elapsed_ms:.2f} ms ({len(entries)} sources, mode={mode})")
	return AskResponse(
		query=q,
		answer=answer,
		mode=mode,
		elapsed_ms=round(elapsed_ms, 2),
		sources=[_to_item(e) for e in entries],
	)
