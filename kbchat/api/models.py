"""
Pydantic models used for request/response validation and API data contracts.

Each class defines the structure of data expected in API endpoints, ensuring
validation and automatic OpenAPI schema generation. JSON field names are
camelCase (``hasVideo``, ``videoUrl``) to match the chat widget and admin UI;
Python attribute names stay snake_case.
"""

import enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel

from kbchat.api.utils import normalize_text
from kbchat.database.entities.knowledge_entry import KnowledgeEntryType


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases while accepting field names too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class KnowledgeEntryPayload(CamelModel):
    """
    Content fields accepted when creating or editing an entry.
    Counters and the identifier are never accepted from clients.
    """

    question: str = Field(..., description="Question text (normalized, required).", examples=["ساعت کاری شرکت چیست؟"])
    answer: str = Field(..., description="Answer text (normalized, required).")
    type: KnowledgeEntryType = Field(..., description="Entry category.")
    system: str = Field(..., description="Product area / subsystem label (normalized, required).")
    has_video: bool = False
    has_document: bool = False
    has_image: bool = False
    video_url: Optional[str] = None
    document_url: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("question", "answer", "system", mode="before")
    @classmethod
    def _normalize_required_text(cls, value):
        if value is not None and not isinstance(value, str):
            raise ValueError("must be a string")
        value = normalize_text(value)
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("has_video", "has_document", "has_image", mode="before")
    @classmethod
    def _missing_flag_is_false(cls, value):
        return False if value is None else value

    @field_validator("video_url", "document_url", "image_url", mode="before")
    @classmethod
    def _blank_url_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
        return value or None


class KnowledgeEntryOut(CamelModel):
    """A stored knowledge-base entry as returned by the API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    question: str
    answer: str
    type: KnowledgeEntryType
    system: str
    has_video: bool = False
    has_document: bool = False
    has_image: bool = False
    likes: int = 0
    dislikes: int = 0
    hits: int = 0
    video_url: Optional[str] = None
    document_url: Optional[str] = None
    image_url: Optional[str] = None


class ChatRequest(BaseModel):
    """A question submitted from the chat widget."""

    question: StrictStr = Field(..., min_length=1, description="Free-text user question.")


class MessageAuthor(str, enum.Enum):
    """Who wrote a chat message."""

    USER = "user"
    BOT = "bot"


class ChatMessage(BaseModel):
    """
    One turn of a chat session. Held only by the client; never persisted
    server-side.
    """

    id: str
    author: MessageAuthor
    text: str
    sources: Optional[List[KnowledgeEntryOut]] = None
    """Entries used to ground a bot answer."""


class ChatResponse(BaseModel):
    """Answer text plus the knowledge-base entries it was built from."""

    answer: str
    sources: List[KnowledgeEntryOut] = Field(default_factory=list)


class HealthStatus(BaseModel):
    """Liveness payload with the active answering configuration."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str = "ok"
    answer_mode: str
    ranking_strategy: str
