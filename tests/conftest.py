import os
import re
import tempfile
from typing import List, Optional

_DB_DIR = tempfile.mkdtemp(prefix="kbchat-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "kb.sqlite3")
os.environ["ANSWER_MODE"] = "direct"
os.environ["PREFER_IPV4"] = "false"
os.environ.pop("API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from sqlalchemy import event

from kbchat.api.models import KnowledgeEntryOut, KnowledgeEntryPayload
from kbchat.database.config.connection_engine import connection_engine, metadata
from kbchat.database.core.funcs import create_entry
from kbchat.database.entities.knowledge_entry import KnowledgeEntry, KnowledgeEntryType
from kbchat.database.helpers.transactionManagement import SessionFactory


def _trigrams(text: str) -> set:
    grams = set()
    for word in re.findall(r"\w+", text.lower()):
        padded = f"  {word} "
        grams.update(padded[i:i + 3] for i in range(len(padded) - 2))
    return grams


def trigram_similarity(a: Optional[str], b: Optional[str]) -> Optional[float]:
    """Python port of pg_trgm's similarity() for the SQLite test database."""
    if a is None or b is None:
        return None
    ta, tb = _trigrams(a), _trigrams(b)
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / len(ta | tb)


@event.listens_for(connection_engine, "connect")
def _register_similarity(dbapi_connection, connection_record):
    dbapi_connection.create_function("similarity", 2, trigram_similarity, deterministic=True)


class RecordingChatModel(BaseChatModel):
    """Chat model double that records the messages it receives."""

    reply: str = "پاسخ تولید شده توسط مدل"
    error: Optional[str] = None
    received: List[List[BaseMessage]] = []

    @property
    def _llm_type(self) -> str:
        return "recording-fake"

    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        self.received.append(list(messages))
        if self.error:
            raise ConnectionError(self.error)
        return ChatResult(generations=[ChatGeneration(message=AIMessage(content=self.reply))])


@pytest.fixture
def db():
    metadata.create_all(connection_engine)
    yield
    metadata.drop_all(connection_engine)


def add_entry(
    question: str,
    answer: str = "پاسخ",
    system: str = "حسابداری",
    entry_type: KnowledgeEntryType = KnowledgeEntryType.SUPPORT,
    likes: int = 0,
    dislikes: int = 0,
    hits: int = 0,
) -> KnowledgeEntryOut:
    """Create an entry through the service layer, then set its counters directly."""
    entry = create_entry(payload=KnowledgeEntryPayload(question=question, answer=answer, type=entry_type, system=system))
    if likes or dislikes or hits:
        with SessionFactory() as session:
            row = session.get(KnowledgeEntry, entry.id)
            row.likes, row.dislikes, row.hits = likes, dislikes, hits
            session.commit()
    return entry


def fetch_entry(entry_id: str) -> Optional[KnowledgeEntry]:
    with SessionFactory() as session:
        return session.get(KnowledgeEntry, entry_id)


@pytest.fixture
def client(db):
    from kbchat.main import app

    with TestClient(app) as test_client:
        yield test_client
