"""
KnowledgeEntry DAO — CRUD, Ranking & Counters
=============================================

Purpose
-------
Thin data-access layer for the `KnowledgeEntry` entity:
- Create, fetch, replace and delete entries.
- List all entries ordered by popularity.
- Execute a ranker-built relevance query.
- Atomically increment the `likes`, `dislikes` and `hits` counters.

Transaction Model
-----------------
- Requires an active SQLAlchemy `Session` supplied by the caller; this DAO
  never commits. Transaction boundaries live in the service layer
  (`kbchat.database.core.funcs`, via `@transactional`).

Counters
--------
- Increments are single `UPDATE ... SET col = col + 1` statements so that
  concurrent votes/hits never lose updates.

Error Handling
--------------
- Errors are logged and re-raised for the caller to handle.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from kbchat.database.entities.knowledge_entry import KnowledgeEntry, net_likes

logger = logging.getLogger(__name__)


class KnowledgeEntryDao:
    """
    Data Access Object for `KnowledgeEntry`.

    Notes:
        - Session management (commit/rollback/close) is delegated to the caller.
        - Update helpers return the number of affected rows; zero means the
          entry does not exist.
    """

    def createEntry(self, session: Session, entry: KnowledgeEntry) -> KnowledgeEntry:
        """
        Add a new entry to the session and flush it so defaults are populated.

        Raises
        ------
        Exception
            Propagates any SQLAlchemy error encountered during the insert.
        """
        try:
            session.add(entry)
            session.flush()
            return entry
        except Exception as e:
            logger.error(f"Error in KnowledgeEntryDao.createEntry. Error Message: {e}")
            raise e

    def fetchEntry(self, session: Session, entry_id: str) -> Optional[KnowledgeEntry]:
        """Return the entry with `entry_id`, or None."""
        try:
            return session.get(KnowledgeEntry, entry_id, populate_existing=True)
        except Exception as e:
            logger.error(f"Error in KnowledgeEntryDao.fetchEntry. Error Message: {e}")
            raise e

    def fetchAll(self, session: Session) -> List[KnowledgeEntry]:
        """
        Fetch every entry, most popular first.

        Ordering: net likes (likes - dislikes) descending, then hits
        descending, then id for a stable order.
        """
        try:
            stmt = select(KnowledgeEntry).order_by(
                net_likes().desc(),
                KnowledgeEntry.hits.desc(),
                KnowledgeEntry.id,
            )
            return list(session.scalars(stmt).all())
        except Exception as e:
            logger.error(f"Error in KnowledgeEntryDao.fetchAll. Error Message: {e}")
            raise e

    def fetchRanked(self, session: Session, stmt: Select) -> List[KnowledgeEntry]:
        """Execute a relevance query built by a ranker and return its entries in order."""
        try:
            return list(session.scalars(stmt).all())
        except Exception as e:
            logger.error(f"Error in KnowledgeEntryDao.fetchRanked. Error Message: {e}")
            raise e

    def replaceContent(self, session: Session, entry_id: str, content: dict) -> Optional[KnowledgeEntry]:
        """
        Overwrite the content fields of an entry; counters are left untouched.

        Parameters
        ----------
        content : dict
            Mapping of entity attribute names to new values. Keys outside the
            content columns are ignored.

        Returns
        -------
        KnowledgeEntry | None
            The updated entry, or None if it does not exist.
        """
        try:
            entry = session.get(KnowledgeEntry, entry_id)
            if entry is None:
                return None
            for field in CONTENT_FIELDS:
                if field in content:
                    setattr(entry, field, content[field])
            session.flush()
            return entry
        except Exception as e:
            logger.error(f"Error in KnowledgeEntryDao.replaceContent. Error Message: {e}")
            raise e

    def deleteEntry(self, session: Session, entry_id: str) -> bool:
        """Delete an entry. Returns False if it did not exist."""
        try:
            entry = session.get(KnowledgeEntry, entry_id)
            if entry is None:
                return False
            session.delete(entry)
            session.flush()
            return True
        except Exception as e:
            logger.error(f"Error in KnowledgeEntryDao.deleteEntry. Error Message: {e}")
            raise e

    def incrementCounter(self, session: Session, entry_ids: Iterable[str], counter: str) -> int:
        """
        Atomically add one to `counter` for each entry in `entry_ids`.

        Parameters
        ----------
        counter : str
            One of "likes", "dislikes", "hits".

        Returns
        -------
        int
            Number of rows updated.
        """
        if counter not in COUNTER_FIELDS:
            raise ValueError(f"Unknown counter: {counter}")
        entry_ids = list(entry_ids)
        if not entry_ids:
            return 0
        try:
            column = getattr(KnowledgeEntry, counter)
            result = session.execute(
                update(KnowledgeEntry)
                .where(KnowledgeEntry.id.in_(entry_ids))
                .values({counter: column + 1})
                .execution_options(synchronize_session=False)
            )
            return result.rowcount
        except Exception as e:
            logger.error(f"Error in KnowledgeEntryDao.incrementCounter. Error Message: {e}")
            raise e


CONTENT_FIELDS = (
    "question",
    "answer",
    "type",
    "system",
    "has_video",
    "has_document",
    "has_image",
    "video_url",
    "document_url",
    "image_url",
)
"""Entity attributes replaced by an edit."""

COUNTER_FIELDS = ("likes", "dislikes", "hits")
"""Entity attributes changed only through increments."""
