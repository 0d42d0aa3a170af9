"""
KnowledgeEntry ORM Model
========================

The ``KnowledgeEntry`` ORM model represents one question/answer record of the
support knowledge base, together with its attachment flags and the feedback
counters collected from the chat widget.

Table
-----
- Table: ``knowledge_base`` (SQLAlchemy 2.0 typed mappings)
- Text primary key generated server-side (``kb-<epoch millis>-<hex>``)
- Column names keep the camelCase spelling of the persisted schema
  (``"hasVideo"``, ``"videoUrl"``, ...); Python attributes are snake_case.

Key Features
~~~~~~~~~~~~
- Content fields: ``question``, ``answer``, ``type``, ``system``
- Attachment flags and optional URLs (video, document, image)
- Counters: ``likes``, ``dislikes``, ``hits`` (non-negative, only ever incremented)
- PostgreSQL-only search indexes: a GIN trigram index on ``question`` (serves
  the ``%`` and ``LIKE`` operators) and a GIN full-text index over
  ``question || ' ' || answer`` (serves ``@@``). The similarity and
  distance rankers score every row; only the full-text ranker is index-backed.

Integration Notes
~~~~~~~~~~~~~~~~~
- Rankers in `kbchat.api.ranking` query against these columns.
- ``searchable_document`` is shared by the full-text index and the full-text
  ranker so the planner can match the indexed expression.
"""

import enum
import time
import uuid
from typing import Optional

from kbchat.database.config.connection_engine import declarativeBase
from sqlalchemy import TEXT, Boolean, CheckConstraint, Index, Integer, false, func, literal_column
from sqlalchemy.orm import Mapped, mapped_column


class KnowledgeEntryType(str, enum.Enum):
    """Closed set of entry categories; values are the labels shown in the admin UI."""

    SUPPORT = "پشتیبانی"
    SALES = "فروش"
    GENERAL = "عمومی"


def generate_entry_id() -> str:
    """Return a new namespaced identifier: ``kb-`` + creation time in ms + random suffix."""
    return f"kb-{int(time.time() * 1000)}-{uuid.uuid4().hex[:4]}"


class KnowledgeEntry(declarativeBase):
    """
    ORM model for the `knowledge_base` table.

    Attributes
    ----------
    id : str
        Primary key, immutable once assigned.
    question, answer : str
        Normalized question and answer text.
    type : str
        One of the `KnowledgeEntryType` values.
    system : str
        Product area / subsystem the entry belongs to.
    has_video, has_document, has_image : bool
        Attachment presence flags.
    video_url, document_url, image_url : str | None
        Optional attachment URLs.
    likes, dislikes, hits : int
        Feedback and usage counters.
    """

    __tablename__ = "knowledge_base"
    __table_args__ = (
        CheckConstraint("likes >= 0", name="ck_knowledge_base_likes"),
        CheckConstraint("dislikes >= 0", name="ck_knowledge_base_dislikes"),
        CheckConstraint("hits >= 0", name="ck_knowledge_base_hits"),
    )

    id: Mapped[str] = mapped_column(TEXT, primary_key=True, default=generate_entry_id)
    question: Mapped[str] = mapped_column(TEXT, nullable=False)
    answer: Mapped[str] = mapped_column(TEXT, nullable=False)
    type: Mapped[str] = mapped_column(TEXT, nullable=False)
    system: Mapped[str] = mapped_column(TEXT, nullable=False)

    has_video: Mapped[bool] = mapped_column("hasVideo", Boolean, default=False, server_default=false())
    has_document: Mapped[bool] = mapped_column("hasDocument", Boolean, default=False, server_default=false())
    has_image: Mapped[bool] = mapped_column("hasImage", Boolean, default=False, server_default=false())

    likes: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    dislikes: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    hits: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    video_url: Mapped[Optional[str]] = mapped_column("videoUrl", TEXT, nullable=True)
    document_url: Mapped[Optional[str]] = mapped_column("documentUrl", TEXT, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column("imageUrl", TEXT, nullable=True)


def net_likes():
    """SQL expression for ``likes - dislikes``."""
    return KnowledgeEntry.likes - KnowledgeEntry.dislikes


def searchable_document():
    """SQL expression for the full-text document built from question and answer."""
    return func.to_tsvector(
        literal_column("'simple'"),
        KnowledgeEntry.question + " " + KnowledgeEntry.answer,
    )


Index(
    "trgm_idx",
    KnowledgeEntry.question,
    postgresql_using="gin",
    postgresql_ops={"question": "gin_trgm_ops"},
).ddl_if(dialect="postgresql")

Index(
    "fts_idx",
    searchable_document(),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")
