"""
DAOs Package — Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package provides the Data Access Layer for the application.
It encapsulates all interactions with SQLAlchemy ORM entities, providing
clean CRUD APIs for the service layer while hiding direct query details.

Conventions
-----------
- SQLAlchemy 2.0 typed mappings (Mapped[...] / mapped_column)
- Session lifecycle (open/commit/rollback) is handled by callers
- DAOs surface exceptions so upper layers decide error policy

Contents
--------
- KnowledgeEntryDao
    Handles knowledge-base persistence:
    * Creates, fetches, replaces and deletes entries
    * Lists entries by popularity (net likes, then hits)
    * Executes ranker-built relevance queries
    * Increments likes / dislikes / hits atomically
"""
