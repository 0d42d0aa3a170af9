"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Creates the Engine from the `DATABASE_URL` setting.
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.

Notes
-----
- The URL comes from environment-backed settings (`.env`, container secrets,
  or deployment vars); production uses PostgreSQL with `pg_trgm`.
- `pool_pre_ping` keeps long-lived pooled connections healthy.
- All ORM models must inherit from `declarativeBase` to participate in schema reflection
  and enable ORM features.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData
from kbchat.database.config.config import settings

# --------------------------------------------------------------------
# Engine object: core interface to the database.
# Responsible for managing connections, executing SQL, and pooling.
# --------------------------------------------------------------------
connection_engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
"""Engine object: Core interface to the database.
Responsible for managing connections, executing SQL, and pooling.
"""

metadata = MetaData()
"""
Metadata object: Stores schema-level information about tables, constraints, indexes, etc. Shared across all models.
"""

declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: Root class for ORM models.
All model classes should inherit from this to gain ORM features and automatic schema generation.
"""
