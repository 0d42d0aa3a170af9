"""
Entities Package — SQLAlchemy 2.0 ORM Models
============================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
These classes are consumed by DAOs (`daos` package) to perform CRUD and
counter updates.

Contents
--------
- KnowledgeEntry
    One question/answer record of the support knowledge base.
    * Fields: `id` (text PK), `question`, `answer`, `type`, `system`
    * Attachment flags/URLs (video, document, image)
    * Counters: `likes`, `dislikes`, `hits`
    * PostgreSQL GIN indexes for trigram and full-text search

- KnowledgeEntryType
    The closed enumeration of entry categories (support, sales, general).
"""
