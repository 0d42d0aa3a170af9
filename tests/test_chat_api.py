import pytest

from conftest import RecordingChatModel, add_entry
from kbchat.api.answer_assembler import NOT_FOUND_MESSAGE, AnswerAssembler, AnswerMode


def use_generative(client, model):
    state = client.app.state
    state.assembler = AnswerAssembler(state.retriever, mode=AnswerMode.GENERATIVE, model=model)


@pytest.mark.parametrize("body", [{}, {"question": 123}, {"question": None}, {"question": ""}])
def test_chat_rejects_missing_or_non_string_question(client, body):
    assert client.post("/api/chat", json=body).status_code == 400


def test_direct_chat_answers_from_store_and_counts_the_hit(client):
    entry = add_entry(
        "قیمت محصول چقدر است",
        "قیمت محصول ۱۰۰ هزار تومان است",
        entry_type="فروش",
        likes=3,
        dislikes=1,
    )

    response = client.post("/api/chat", json={"question": "قیمت محصول"})

    assert response.status_code == 200
    body = response.json()
    assert "قیمت محصول ۱۰۰ هزار تومان است" in body["answer"]
    assert [s["id"] for s in body["sources"]] == [entry.id]
    assert body["sources"][0]["likes"] == 3

    client.app.state.retriever.flush()
    listed = client.get("/api/knowledge-base").json()
    assert listed[0]["id"] == entry.id
    assert listed[0]["hits"] == 1


def test_direct_chat_on_empty_store(client):
    body = client.post("/api/chat", json={"question": "ساعت کاری"}).json()

    assert body == {"answer": NOT_FOUND_MESSAGE, "sources": []}


def test_whitespace_question_gets_no_context(client):
    add_entry("ساعت کاری شرکت")

    body = client.post("/api/chat", json={"question": "   "}).json()

    assert body["sources"] == []


def test_generative_chat_on_empty_store(client):
    model = RecordingChatModel(reply="متاسفانه اطلاعات کافی ندارم.")
    use_generative(client, model)

    body = client.post("/api/chat", json={"question": "ساعت کاری"}).json()

    assert body == {"answer": "متاسفانه اطلاعات کافی ندارم.", "sources": []}
    assert len(model.received) == 1


def test_generative_chat_returns_model_text_and_sources(client):
    entry = add_entry("ساعت کاری شرکت", "از ساعت ۸ تا ۱۶")
    use_generative(client, RecordingChatModel(reply="ساعت کاری از ۸ تا ۱۶ است."))

    body = client.post("/api/chat", json={"question": "ساعت کاری"}).json()

    assert body["answer"] == "ساعت کاری از ۸ تا ۱۶ است."
    assert [s["id"] for s in body["sources"]] == [entry.id]
    assert set(body["sources"][0]) >= {"hasVideo", "videoUrl", "likes", "dislikes", "hits"}


def test_chat_without_api_key_is_rejected(client):
    use_generative(client, None)

    response = client.post("/api/chat", json={"question": "ساعت کاری"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Server is not configured with an API key."}


def test_model_failure_is_a_generic_500(client):
    use_generative(client, RecordingChatModel(error="invalid api key sk-live-123"))

    response = client.post("/api/chat", json={"question": "ساعت کاری"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to get a response from the AI assistant."}
    assert "sk-live-123" not in response.text


def test_health_reports_configuration(client):
    body = client.get("/api/health").json()

    assert body == {"status": "ok", "answerMode": "direct", "rankingStrategy": "trigram_similarity"}
