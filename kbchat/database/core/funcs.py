"""
Service-layer operations for the knowledge base.

All functions are wrapped with the `@transactional` decorator, which manages
SQLAlchemy sessions and transactions automatically. Each function accepts (and
uses) an injected `session: Session` provided by the decorator.

Entities are converted to `KnowledgeEntryOut` before the transaction ends, so
callers never touch detached ORM rows.
"""

from typing import Iterable, List

from sqlalchemy.orm import Session

from kbchat.api.models import KnowledgeEntryOut, KnowledgeEntryPayload
from kbchat.api.ranking import RelevanceRanker
from kbchat.database.daos.knowledge_entry_dao import KnowledgeEntryDao
from kbchat.database.entities.knowledge_entry import KnowledgeEntry
from kbchat.database.helpers.transactionManagement import transactional


class EntryNotFoundError(LookupError):
    """Raised when an operation targets an entry id that does not exist."""

    def __init__(self, entry_id: str):
        super().__init__(f"Entry not found: {entry_id}")
        self.entry_id = entry_id


def _content_from_payload(payload: KnowledgeEntryPayload) -> dict:
    content = payload.model_dump()
    content["type"] = payload.type.value
    return content


@transactional
def list_entries(session: Session) -> List[KnowledgeEntryOut]:
    """
    Return every entry, ordered by net likes then hits (both descending).

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    """
    dao = KnowledgeEntryDao()
    return [KnowledgeEntryOut.model_validate(e) for e in dao.fetchAll(session)]


@transactional
def create_entry(session: Session, payload: KnowledgeEntryPayload) -> KnowledgeEntryOut:
    """
    Persist a new entry with a server-generated id and zeroed counters.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    payload : KnowledgeEntryPayload
        Validated, normalized content fields.

    Returns
    -------
    KnowledgeEntryOut
        The stored entry.
    """
    dao = KnowledgeEntryDao()
    entry = KnowledgeEntry(**_content_from_payload(payload), likes=0, dislikes=0, hits=0)
    dao.createEntry(session, entry)
    return KnowledgeEntryOut.model_validate(entry)


@transactional
def update_entry(session: Session, entry_id: str, payload: KnowledgeEntryPayload) -> KnowledgeEntryOut:
    """
    Replace all content fields of an entry; counters are untouched.

    Raises
    ------
    EntryNotFoundError
        If `entry_id` does not exist.
    """
    dao = KnowledgeEntryDao()
    entry = dao.replaceContent(session, entry_id, _content_from_payload(payload))
    if entry is None:
        raise EntryNotFoundError(entry_id)
    return KnowledgeEntryOut.model_validate(entry)


@transactional
def delete_entry(session: Session, entry_id: str) -> None:
    """
    Delete an entry.

    Raises
    ------
    EntryNotFoundError
        If `entry_id` does not exist (including a second delete).
    """
    dao = KnowledgeEntryDao()
    if not dao.deleteEntry(session, entry_id):
        raise EntryNotFoundError(entry_id)


def _increment_feedback(session: Session, entry_id: str, counter: str) -> KnowledgeEntryOut:
    dao = KnowledgeEntryDao()
    if dao.incrementCounter(session, [entry_id], counter) == 0:
        raise EntryNotFoundError(entry_id)
    return KnowledgeEntryOut.model_validate(dao.fetchEntry(session, entry_id))


@transactional
def increment_likes(session: Session, entry_id: str) -> KnowledgeEntryOut:
    """Record one "helpful" vote. Raises `EntryNotFoundError` for unknown ids."""
    return _increment_feedback(session, entry_id, "likes")


@transactional
def increment_dislikes(session: Session, entry_id: str) -> KnowledgeEntryOut:
    """Record one "not helpful" vote. Raises `EntryNotFoundError` for unknown ids."""
    return _increment_feedback(session, entry_id, "dislikes")


@transactional
def record_hits(session: Session, entry_ids: Iterable[str]) -> int:
    """Add one hit to each listed entry. Returns the number of rows updated."""
    dao = KnowledgeEntryDao()
    return dao.incrementCounter(session, entry_ids, "hits")


@transactional
def fetch_ranked_entries(session: Session, ranker: RelevanceRanker, question: str, limit: int) -> List[KnowledgeEntryOut]:
    """
    Run the ranker's relevance query.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    ranker : RelevanceRanker
        Strategy that builds the SELECT.
    question : str
        Normalized user question.
    limit : int
        Maximum number of entries.
    """
    dao = KnowledgeEntryDao()
    entries = dao.fetchRanked(session, ranker.build_query(question, limit))
    return [KnowledgeEntryOut.model_validate(e) for e in entries]
