"""
FastAPI Router — Chat • Knowledge Base CRUD • Feedback
======================================================

Purpose
-------
Defines the HTTP API for:
- Chat: answer a question from the knowledge base (direct or LLM-grounded)
- Knowledge base: list, create, edit, delete entries
- Feedback: like / dislike counters per entry
- Health: liveness plus the active answering configuration

Key Notes
---------
- Input validation via Pydantic models in `kbchat.api.models`; validation
  failures are answered with 400 (see `kbchat.main`).
- The `AnswerAssembler` lives on `app.state` and is built at startup.
- Store errors on CRUD routes become a generic 500; details are only logged.
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request, Response
from sqlalchemy.exc import SQLAlchemyError

from kbchat.api.answer_assembler import AnswerAssembler, ModelNotConfiguredError, ModelUnavailableError
from kbchat.api.models import ChatRequest, ChatResponse, HealthStatus, KnowledgeEntryOut, KnowledgeEntryPayload
from kbchat.database.core.funcs import (
    EntryNotFoundError,
    create_entry,
    delete_entry,
    increment_dislikes,
    increment_likes,
    list_entries,
    update_entry,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
"""Creates the FastAPI router in which we define its routes"""


def get_assembler(request: Request) -> AnswerAssembler:
    return request.app.state.assembler


@router.post("/chat", response_model=ChatResponse)
def chat(data: ChatRequest, request: Request):
    """Answer a user question.

    Request body:
        ChatRequest {question}

    Response:
        200: {'answer': str, 'sources': [entry, ...]}
        400: missing / non-string question
        500: model not configured or model call failed
    """
    assembler = get_assembler(request)
    try:
        return assembler.answer(data.question)
    except ModelNotConfiguredError as e:
        logger.error(f"Chat rejected: {e}")
        raise HTTPException(status_code=500, detail="Server is not configured with an API key.")
    except ModelUnavailableError:
        raise HTTPException(status_code=500, detail="Failed to get a response from the AI assistant.")


@router.get("/knowledge-base", response_model=List[KnowledgeEntryOut])
def get_knowledge_base():
    """List all entries, ranked by net likes then hits."""
    try:
        return list_entries()
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch knowledge base: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch knowledge base.")


@router.post("/knowledge-base", response_model=KnowledgeEntryOut, status_code=201)
def new_entry(data: KnowledgeEntryPayload):
    """Create an entry; the id is generated server-side and counters start at zero."""
    try:
        return create_entry(payload=data)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create entry: {e}")
        raise HTTPException(status_code=500, detail="Failed to create new entry.")


@router.put("/knowledge-base/{entry_id}", response_model=KnowledgeEntryOut)
def edit_entry(entry_id: str, data: KnowledgeEntryPayload):
    """Replace the content fields of an entry. Counters are not affected."""
    try:
        return update_entry(entry_id=entry_id, payload=data)
    except EntryNotFoundError:
        raise HTTPException(status_code=404, detail="Entry not found.")
    except SQLAlchemyError as e:
        logger.error(f"Failed to update entry: {e}")
        raise HTTPException(status_code=500, detail="Failed to update entry.")


@router.delete("/knowledge-base/{entry_id}", status_code=204)
def remove_entry(entry_id: str):
    """Delete an entry."""
    try:
        delete_entry(entry_id=entry_id)
    except EntryNotFoundError:
        raise HTTPException(status_code=404, detail="Entry not found.")
    except SQLAlchemyError as e:
        logger.error(f"Failed to delete entry: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete entry.")
    return Response(status_code=204)


@router.post("/knowledge-base/{entry_id}/like", response_model=KnowledgeEntryOut)
def like_entry(entry_id: str):
    """Record one "helpful" vote on an entry."""
    try:
        return increment_likes(entry_id=entry_id)
    except EntryNotFoundError:
        raise HTTPException(status_code=404, detail="Entry not found.")
    except SQLAlchemyError as e:
        logger.error(f"Failed to record like: {e}")
        raise HTTPException(status_code=500, detail="Failed to record feedback.")


@router.post("/knowledge-base/{entry_id}/dislike", response_model=KnowledgeEntryOut)
def dislike_entry(entry_id: str):
    """Record one "not helpful" vote on an entry."""
    try:
        return increment_dislikes(entry_id=entry_id)
    except EntryNotFoundError:
        raise HTTPException(status_code=404, detail="Entry not found.")
    except SQLAlchemyError as e:
        logger.error(f"Failed to record dislike: {e}")
        raise HTTPException(status_code=500, detail="Failed to record feedback.")


@router.get("/health", response_model=HealthStatus)
def health(request: Request):
    """Liveness check with the active answer mode and ranking strategy."""
    assembler = get_assembler(request)
    return HealthStatus(
        answer_mode=assembler.mode.value,
        ranking_strategy=assembler.retriever.ranker.name,
    )
