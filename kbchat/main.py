"""
FastAPI application bootstrap with: \n
- Lifespan-managed construction of the ranker, context retriever, chat model and answer assembler \n
- CORS configured for the chat widget / admin UI \n
- Request validation errors reported as 400 \n

Environment contract (from `settings`): \n
- ANSWER_MODE: 'generative' (needs API_KEY) or 'direct'. \n
- RANKING_STRATEGY / SIMILARITY_THRESHOLD / MAX_CONTEXT_RESULTS: retrieval tuning. \n
- FRONTEND_URL: allowed CORS origin. \n
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kbchat.api.answer_assembler import AnswerAssembler, AnswerMode, build_chat_model
from kbchat.api.context_retriever import ContextRetriever
from kbchat.api.fast_api import router
from kbchat.api.ranking import build_ranker
from kbchat.database.config.config import settings

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once with a timestamped single-line format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup (before yielding):
        * Report a configured proxy (model requests go through it).
        * Build the ranker and `ContextRetriever`.
        * Build the chat model once (None without API_KEY) and the `AnswerAssembler`,
          attached to `app.state`.
        * In generative mode a missing API_KEY is reported as fatal; chat requests
          are then rejected with "not configured".
    - On shutdown (after yielding):
        * Wait for pending hit updates and stop the retriever's executor.
    """
    if settings.HTTPS_PROXY:
        logger.info(f"System proxy detected at {settings.HTTPS_PROXY}. Configuring for model requests.")

    ranker = build_ranker(settings.RANKING_STRATEGY, settings.SIMILARITY_THRESHOLD)
    retriever = ContextRetriever(ranker, max_results=settings.MAX_CONTEXT_RESULTS)

    mode = AnswerMode(settings.ANSWER_MODE)
    model = build_chat_model(settings)
    if mode is AnswerMode.GENERATIVE and model is None:
        logger.error("FATAL ERROR: API_KEY is not defined in environment variables.")

    app.state.retriever = retriever
    app.state.assembler = AnswerAssembler(
        retriever,
        mode=mode,
        model=model,
        fallback_to_direct=settings.DIRECT_FALLBACK_ON_MODEL_ERROR,
    )
    logger.info(f"Knowledge-base chat ready (mode={mode.value}, ranking={ranker.name}).")

    try:
        yield
    finally:
        app.state.retriever.shutdown()
        logger.info("Pending hit updates flushed; shutting down.")


configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="kbchat", lifespan=lifespan)
"""Instantiates the FastAPI application object with the lifespan handler."""

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies as 400 with the offending fields."""
    fields = [".".join(str(part) for part in err["loc"] if part != "body") for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"detail": "Required fields are missing or invalid.", "fields": fields},
    )


app.include_router(router)


def run() -> None:
    """Serve the app with uvicorn (``kbchat`` console script)."""
    import uvicorn

    uvicorn.run("kbchat.main:app", host="0.0.0.0", port=8000)
