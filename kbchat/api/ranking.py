"""
Relevance rankers for knowledge-base retrieval.

A ranker turns a (normalized) user question into a single SELECT over
`knowledge_base`. The database does the scoring: PostgreSQL `pg_trgm` for the
trigram rankers and the built-in full-text search for `FullTextRanker`.

Every ranker orders by its relevance score first and then breaks ties with
the same popularity keys: net likes (likes - dislikes) descending, then hits
descending. Popularity never outranks relevance.

Strategies
----------
- trigram_similarity : similarity(question, q) > threshold, highest first (default)
- trigram_distance   : question <-> q, nearest first, no threshold
- full_text          : tsvector(question || ' ' || answer) @@ plainto_tsquery(q), ts_rank first
"""

from abc import ABC, abstractmethod

from sqlalchemy import func, literal_column, select
from sqlalchemy.sql import Select

from kbchat.database.entities.knowledge_entry import KnowledgeEntry, net_likes, searchable_document


def popularity_order():
    """Secondary sort keys shared by all rankers."""
    return (net_likes().desc(), KnowledgeEntry.hits.desc())


class RelevanceRanker(ABC):
    """Builds the ranking query used by the context retriever."""

    name: str = ""

    @abstractmethod
    def build_query(self, question: str, limit: int) -> Select:
        """Return a SELECT of `KnowledgeEntry` rows, most relevant first, capped at `limit`."""


class TrigramSimilarityRanker(RelevanceRanker):
    """Entries whose trigram similarity to the question exceeds `threshold`."""

    name = "trigram_similarity"

    def __init__(self, threshold: float = 0.1):
        self.threshold = threshold

    def build_query(self, question: str, limit: int) -> Select:
        score = func.similarity(KnowledgeEntry.question, question)
        return (
            select(KnowledgeEntry)
            .where(score > self.threshold)
            .order_by(score.desc(), *popularity_order())
            .limit(limit)
        )


class TrigramDistanceRanker(RelevanceRanker):
    """
    Nearest neighbours by trigram distance (`<->`).
    Always returns up to `limit` rows, even when none is really relevant.
    """

    name = "trigram_distance"

    def build_query(self, question: str, limit: int) -> Select:
        distance = KnowledgeEntry.question.op("<->")(question)
        return (
            select(KnowledgeEntry)
            .order_by(distance.asc(), *popularity_order())
            .limit(limit)
        )


class FullTextRanker(RelevanceRanker):
    """Full-text match of the question against question + answer, ranked by ts_rank."""

    name = "full_text"

    def build_query(self, question: str, limit: int) -> Select:
        document = searchable_document()
        query = func.plainto_tsquery(literal_column("'simple'"), question)
        rank = func.ts_rank(document, query)
        return (
            select(KnowledgeEntry)
            .where(document.op("@@")(query))
            .order_by(rank.desc(), *popularity_order())
            .limit(limit)
        )


RANKERS = {
    TrigramSimilarityRanker.name: TrigramSimilarityRanker,
    TrigramDistanceRanker.name: TrigramDistanceRanker,
    FullTextRanker.name: FullTextRanker,
}


def build_ranker(strategy: str, similarity_threshold: float = 0.1) -> RelevanceRanker:
    """Instantiate the ranker named by `strategy`."""
    if strategy not in RANKERS:
        raise ValueError(f"Unknown ranking strategy: {strategy}")
    if strategy == TrigramSimilarityRanker.name:
        return TrigramSimilarityRanker(threshold=similarity_threshold)
    return RANKERS[strategy]()
