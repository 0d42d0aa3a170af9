"""
API Package — FastAPI Router • Models • Retrieval • Answer Assembly
===================================================================

Contents
--------
- fast_api
    FastAPI router with endpoints for:
      • Chat (/api/chat): answer a question from the knowledge base
      • Knowledge base CRUD (/api/knowledge-base)
      • Feedback: like / dislike counters per entry
      • Health (/api/health)

- models
    Pydantic data contracts (camelCase JSON):
      • KnowledgeEntryPayload, KnowledgeEntryOut
      • ChatRequest, ChatResponse, ChatMessage, MessageAuthor
      • HealthStatus

- utils
    • normalize_text(text) — Persian text canonicalization used at every text boundary
    • lc_text_from_content(content) — LangChain content → plain text

- ranking
    Interchangeable relevance rankers (trigram similarity, trigram distance,
    full-text) behind `RelevanceRanker`.

- context_retriever
    `ContextRetriever`: ranked lookup with graceful degradation and
    background hit counting.

- answer_assembler
    `AnswerAssembler`: direct answers or LLM answers grounded on the
    retrieved entries (LangChain + OpenAI).
"""
