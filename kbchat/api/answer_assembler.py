"""
Answer assembly — direct answers or LLM answers grounded on retrieved entries.

Modes
-----
- DIRECT: the stored answers of the retrieved entries are returned verbatim,
  joined by a visible separator; a fixed Persian "not found" message when
  nothing matched.
- GENERATIVE: the retrieved entries are formatted as Q/A blocks and given to
  the chat model as grounding context, with a system instruction that keeps
  the assistant on the context and answering in Persian.

The chat model is a LangChain `BaseChatModel`, built once at startup by
`build_chat_model` and injected into `AnswerAssembler`.
"""

import enum
import logging
from typing import List, Optional

import httpx
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

from kbchat.api.context_retriever import ContextRetriever
from kbchat.api.models import ChatResponse, KnowledgeEntryOut
from kbchat.api.utils import lc_text_from_content, normalize_text

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "متاسفانه پاسخی برای سوال شما در پایگاه دانش پیدا نشد. لطفا سوال خود را به شکل دیگری بپرسید یا با پشتیبانی تماس بگیرید."
"""Direct-mode reply when no entry matches."""

ANSWER_SEPARATOR = "\n\n---\n\n"
CONTEXT_SEPARATOR = "\n---\n"
NO_CONTEXT_PLACEHOLDER = "No relevant context found."

SYSTEM_INSTRUCTION = """You are a helpful and friendly assistant for "Payvast Software Group". Your name is "Peyvastyar".
Answer the user's question based *only* on the provided context.
If the context does not contain the answer, state that you don't have enough information and suggest they ask in a different way or contact support.
Always answer in Persian. Be concise and clear."""

PROMPT_TEMPLATE = PromptTemplate.from_template("Context:\n{context}\n\nUser Question: {question}")


class AnswerMode(str, enum.Enum):
    DIRECT = "direct"
    GENERATIVE = "generative"


class ModelNotConfiguredError(RuntimeError):
    """Generative mode was requested but no chat model credential is configured."""


class ModelUnavailableError(RuntimeError):
    """The chat model call failed (network, auth, quota, timeout)."""


def build_context_text(entries: List[KnowledgeEntryOut]) -> str:
    """Format entries as ``Q: ...\\nA: ...`` blocks for the model."""
    if not entries:
        return NO_CONTEXT_PLACEHOLDER
    return CONTEXT_SEPARATOR.join(f"Q: {e.question}\nA: {e.answer}" for e in entries)


def build_http_client(settings) -> Optional[httpx.Client]:
    """
    HTTP client for model requests, or None to let the OpenAI SDK build its own.

    With `PREFER_IPV4` the client binds to the IPv4 wildcard address, so model
    connections only use IPv4 routes. `HTTPS_PROXY` is routed through the same
    client. Other outbound traffic in the process is left untouched.
    """
    if not settings.PREFER_IPV4 and not settings.HTTPS_PROXY:
        return None
    transport_options = {}
    if settings.PREFER_IPV4:
        transport_options["local_address"] = "0.0.0.0"
    if settings.HTTPS_PROXY:
        transport_options["proxy"] = settings.HTTPS_PROXY
    return httpx.Client(
        transport=httpx.HTTPTransport(**transport_options),
        timeout=settings.LLM_TIMEOUT_SECONDS,
        trust_env=False,
    )


def build_chat_model(settings) -> Optional[BaseChatModel]:
    """
    Create the chat model client from settings, or None when no API key is set.

    The OpenAI client applies `LLM_TIMEOUT_SECONDS` per request and retries
    transient failures up to `LLM_MAX_RETRIES` times with exponential backoff.
    """
    if not settings.API_KEY:
        return None
    return ChatOpenAI(
        model=settings.OPEN_AI_MODEL,
        api_key=settings.API_KEY,
        temperature=settings.LLM_TEMPERATURE,
        timeout=settings.LLM_TIMEOUT_SECONDS,
        max_retries=settings.LLM_MAX_RETRIES,
        http_client=build_http_client(settings),
    )


class AnswerAssembler:
    """
    Turns a user question into a `ChatResponse`.

    Parameters
    ----------
    retriever : ContextRetriever
        Supplies the grounding entries.
    mode : AnswerMode
        DIRECT or GENERATIVE.
    model : BaseChatModel, optional
        Required in GENERATIVE mode.
    fallback_to_direct : bool
        In GENERATIVE mode, answer directly when the model call fails instead
        of raising `ModelUnavailableError`.
    """

    def __init__(
        self,
        retriever: ContextRetriever,
        mode: AnswerMode = AnswerMode.GENERATIVE,
        model: Optional[BaseChatModel] = None,
        fallback_to_direct: bool = False,
    ):
        self.retriever = retriever
        self.mode = AnswerMode(mode)
        self.model = model
        self.fallback_to_direct = fallback_to_direct

    def answer(self, question: str) -> ChatResponse:
        """
        Answer `question`.

        Raises
        ------
        ModelNotConfiguredError
            GENERATIVE mode without a model (checked before any retrieval).
        ModelUnavailableError
            The model call failed and fallback is disabled.
        """
        if self.mode is AnswerMode.GENERATIVE and self.model is None:
            raise ModelNotConfiguredError("Server is not configured with an API key.")

        question = normalize_text(question)
        entries = self.retriever.find_relevant_context(question)

        if self.mode is AnswerMode.DIRECT:
            return self.direct_answer(entries)

        try:
            return self.generative_answer(question, entries)
        except ModelUnavailableError:
            if not self.fallback_to_direct:
                raise
            logger.warning("Model call failed; answering directly from %d entries.", len(entries))
            return self.direct_answer(entries)

    def direct_answer(self, entries: List[KnowledgeEntryOut]) -> ChatResponse:
        if not entries:
            return ChatResponse(answer=NOT_FOUND_MESSAGE, sources=[])
        return ChatResponse(answer=ANSWER_SEPARATOR.join(e.answer for e in entries), sources=entries)

    def generative_answer(self, question: str, entries: List[KnowledgeEntryOut]) -> ChatResponse:
        prompt = PROMPT_TEMPLATE.format(context=build_context_text(entries), question=question)
        messages = [SystemMessage(content=SYSTEM_INSTRUCTION), HumanMessage(content=prompt)]
        try:
            response = self.model.invoke(messages)
        except Exception as e:
            logger.error(f"Error with chat model API: {e}")
            if e.__cause__ is not None:
                logger.error(f"Underlying cause: {e.__cause__}")
            raise ModelUnavailableError("Failed to get a response from the AI assistant.") from e
        return ChatResponse(answer=lc_text_from_content(response.content), sources=entries)
