"""
The `database` package is responsible for all interactions with the knowledge-base store.
It provides configuration, entity definitions, CRUD operations, and utility functions
that ensure smooth integration between the application and its data layer.

Contents:
    - config:
        Settings and the SQLAlchemy engine / declarative base.

    - entities:
        The `KnowledgeEntry` ORM model and its search indexes.

    - daos:
        Data Access Objects providing CRUD and counter operations.

    - core:
        Transactional service functions used by the API routers.

    - helpers:
        Session and transaction management (`@transactional`).

    - seed:
        Command that creates the schema and loads entries from a JSON file.
"""
