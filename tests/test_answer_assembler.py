from types import SimpleNamespace

import httpx
import pytest
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from conftest import RecordingChatModel
from kbchat.api.answer_assembler import (
    ANSWER_SEPARATOR,
    NO_CONTEXT_PLACEHOLDER,
    NOT_FOUND_MESSAGE,
    SYSTEM_INSTRUCTION,
    AnswerAssembler,
    AnswerMode,
    ModelNotConfiguredError,
    ModelUnavailableError,
    build_chat_model,
    build_context_text,
    build_http_client,
)
from kbchat.api.models import KnowledgeEntryOut
from kbchat.database.entities.knowledge_entry import KnowledgeEntryType


def make_entry(entry_id: str, question: str, answer: str) -> KnowledgeEntryOut:
    return KnowledgeEntryOut(id=entry_id, question=question, answer=answer, type=KnowledgeEntryType.SALES, system="فروش")


class StubRetriever:
    def __init__(self, entries):
        self.entries = entries
        self.questions = []

    def find_relevant_context(self, question, max_results=None):
        self.questions.append(question)
        return list(self.entries)


PRICE = make_entry("kb-1", "قیمت محصول چقدر است", "قیمت محصول ۱۰۰ هزار تومان است")
HOURS = make_entry("kb-2", "ساعت کاری شرکت", "از ساعت ۸ تا ۱۶")


def test_direct_mode_joins_answers():
    assembler = AnswerAssembler(StubRetriever([PRICE, HOURS]), mode=AnswerMode.DIRECT)

    response = assembler.answer("قیمت")

    assert response.answer == PRICE.answer + ANSWER_SEPARATOR + HOURS.answer
    assert response.sources == [PRICE, HOURS]


def test_direct_mode_without_matches_returns_not_found_message():
    response = AnswerAssembler(StubRetriever([]), mode=AnswerMode.DIRECT).answer("چیزی")

    assert response.answer == NOT_FOUND_MESSAGE
    assert response.sources == []


def test_question_is_normalized_before_retrieval():
    retriever = StubRetriever([])
    AnswerAssembler(retriever, mode=AnswerMode.DIRECT).answer("  قیمت   محصول ")

    assert retriever.questions == ["قیمت محصول"]


def test_generative_mode_grounds_model_on_retrieved_entries():
    model = RecordingChatModel(reply="قیمت ۱۰۰ هزار تومان است.")
    assembler = AnswerAssembler(StubRetriever([PRICE, HOURS]), mode=AnswerMode.GENERATIVE, model=model)

    response = assembler.answer("قیمت محصول")

    assert response.answer == "قیمت ۱۰۰ هزار تومان است."
    assert response.sources == [PRICE, HOURS]
    system, human = model.received[0]
    assert isinstance(system, SystemMessage) and system.content == SYSTEM_INSTRUCTION
    assert isinstance(human, HumanMessage)
    assert human.content == (
        "Context:\n"
        f"Q: {PRICE.question}\nA: {PRICE.answer}\n---\nQ: {HOURS.question}\nA: {HOURS.answer}"
        "\n\nUser Question: قیمت محصول"
    )


def test_system_instruction_keeps_model_on_context_in_persian():
    assert "Peyvastyar" in SYSTEM_INSTRUCTION
    assert "*only* on the provided context" in SYSTEM_INSTRUCTION
    assert "don't have enough information" in SYSTEM_INSTRUCTION
    assert "Always answer in Persian" in SYSTEM_INSTRUCTION


def test_generative_mode_without_context_uses_placeholder():
    model = RecordingChatModel(reply="اطلاعات کافی ندارم.")
    response = AnswerAssembler(StubRetriever([]), mode=AnswerMode.GENERATIVE, model=model).answer("سوال")

    assert response.answer == "اطلاعات کافی ندارم."
    assert response.sources == []
    assert NO_CONTEXT_PLACEHOLDER in model.received[0][1].content


def test_build_context_text():
    assert build_context_text([]) == NO_CONTEXT_PLACEHOLDER
    assert build_context_text([HOURS]) == f"Q: {HOURS.question}\nA: {HOURS.answer}"


def test_generative_mode_without_model_fails_before_retrieval():
    retriever = StubRetriever([PRICE])
    assembler = AnswerAssembler(retriever, mode=AnswerMode.GENERATIVE, model=None)

    with pytest.raises(ModelNotConfiguredError):
        assembler.answer("قیمت")
    assert retriever.questions == []


def test_model_failure_raises_model_unavailable():
    model = RecordingChatModel(error="quota exceeded for key sk-secret")
    assembler = AnswerAssembler(StubRetriever([PRICE]), mode=AnswerMode.GENERATIVE, model=model)

    with pytest.raises(ModelUnavailableError) as excinfo:
        assembler.answer("قیمت")
    assert "sk-secret" not in str(excinfo.value)


def test_model_failure_can_fall_back_to_direct_answer():
    model = RecordingChatModel(error="timeout")
    assembler = AnswerAssembler(
        StubRetriever([PRICE]), mode=AnswerMode.GENERATIVE, model=model, fallback_to_direct=True
    )

    response = assembler.answer("قیمت")

    assert response.answer == PRICE.answer
    assert response.sources == [PRICE]


def settings_namespace(**overrides):
    values = dict(
        API_KEY=None,
        OPEN_AI_MODEL="gpt-4o-mini",
        LLM_TEMPERATURE=0.2,
        LLM_TIMEOUT_SECONDS=12.0,
        LLM_MAX_RETRIES=3,
        HTTPS_PROXY=None,
        PREFER_IPV4=False,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_build_chat_model_requires_api_key():
    assert build_chat_model(settings_namespace()) is None
    assert build_chat_model(settings_namespace(API_KEY="")) is None


def test_build_chat_model_applies_timeout_and_retries():
    model = build_chat_model(settings_namespace(API_KEY="sk-test"))

    assert isinstance(model, ChatOpenAI)
    assert model.model_name == "gpt-4o-mini"
    assert model.request_timeout == 12.0
    assert model.max_retries == 3



def test_http_client_is_left_to_the_sdk_without_network_preferences():
    assert build_http_client(settings_namespace()) is None


def test_http_client_binds_ipv4_and_routes_through_proxy(monkeypatch):
    transports = []

    class RecordingTransport(httpx.HTTPTransport):
        def __init__(self, **kwargs):
            transports.append(kwargs)
            super().__init__(**kwargs)

    monkeypatch.setattr(httpx, "HTTPTransport", RecordingTransport)

    client = build_http_client(settings_namespace(PREFER_IPV4=True, HTTPS_PROXY="http://proxy.internal:3128"))

    assert isinstance(client, httpx.Client)
    assert transports == [{"local_address": "0.0.0.0", "proxy": "http://proxy.internal:3128"}]
    client.close()


def test_chat_model_uses_the_scoped_http_client():
    model = build_chat_model(settings_namespace(API_KEY="sk-test", PREFER_IPV4=True))

    assert isinstance(model.http_client, httpx.Client)
