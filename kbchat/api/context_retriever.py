"""
Context retrieval for the chat endpoint.

`ContextRetriever.find_relevant_context` normalizes the incoming question,
asks the configured `RelevanceRanker` for the best matching entries and
schedules a hit increment for each entry it returns.

Failure policy
--------------
- A store failure while ranking is logged and degrades to "no context" (an
  empty list); it is never raised to the caller.
- Hit increments run on a background executor. The caller does not wait for
  them; a failed increment is logged inside the background task and otherwise
  ignored.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Lock
from typing import Iterable, List, Optional

from kbchat.api.models import KnowledgeEntryOut
from kbchat.api.ranking import RelevanceRanker
from kbchat.api.utils import normalize_text
from kbchat.database.core.funcs import fetch_ranked_entries, record_hits

logger = logging.getLogger(__name__)


class ContextRetriever:
    """
    Finds the knowledge-base entries most relevant to a question.

    Parameters
    ----------
    ranker : RelevanceRanker
        Strategy that builds the ranking query.
    max_results : int
        Default cap on the number of entries returned.
    executor : ThreadPoolExecutor, optional
        Executor used for hit increments; one is created when omitted.
    """

    def __init__(self, ranker: RelevanceRanker, max_results: int = 3, executor: Optional[ThreadPoolExecutor] = None):
        self.ranker = ranker
        self.max_results = max_results
        self.executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="kb-hits")
        self._pending = set()
        self._lock = Lock()

    def find_relevant_context(self, question: str, max_results: Optional[int] = None) -> List[KnowledgeEntryOut]:
        """
        Return up to `max_results` entries, most relevant first.

        Empty or whitespace-only questions return ``[]`` without touching the
        store.
        """
        limit = self.max_results if max_results is None else max_results
        query = normalize_text(question)
        if not query or limit <= 0:
            return []

        try:
            entries = fetch_ranked_entries(ranker=self.ranker, question=query, limit=limit)
        except Exception:
            logger.exception("Error finding relevant context from DB.")
            return []

        if entries:
            self._schedule_hits([entry.id for entry in entries])
        return entries

    def _schedule_hits(self, entry_ids: Iterable[str]) -> None:
        entry_ids = list(entry_ids)
        try:
            future = self.executor.submit(self._record_hits, entry_ids)
        except RuntimeError:
            logger.warning("Hit update for %s skipped: executor is shut down.", entry_ids)
            return
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    @staticmethod
    def _record_hits(entry_ids: List[str]) -> None:
        try:
            record_hits(entry_ids=entry_ids)
        except Exception as e:
            logger.error("Failed to update hits count: %s", e, exc_info=True)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until every scheduled hit update has finished."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self) -> None:
        """Finish outstanding hit updates and stop the executor."""
        self.executor.shutdown(wait=True)
