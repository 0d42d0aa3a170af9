"""
Knowledge-base seeding command.

Creates the `knowledge_base` schema (with the `pg_trgm` extension and GIN
search indexes on PostgreSQL) and loads entries from a JSON array file.
Text fields are normalized the same way the API normalizes them; entries
whose id already exists are skipped.

Usage
-----
    python -m kbchat.database.seed knowledge-base.json
    python -m kbchat.database.seed knowledge-base.json --reset
"""

import json
import logging
import sys
from pathlib import Path
from typing import List

import click
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.orm import Session

from kbchat.api.models import KnowledgeEntryPayload
from kbchat.database.config.connection_engine import connection_engine, metadata
from kbchat.database.daos.knowledge_entry_dao import COUNTER_FIELDS
from kbchat.database.entities.knowledge_entry import KnowledgeEntry, generate_entry_id
from kbchat.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


def prepare_schema(reset: bool = False) -> None:
    """
    Create the extension, table and indexes.

    Parameters
    ----------
    reset : bool
        Drop the existing table first for a clean slate.
    """
    with connection_engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS pg_trgm"))
            logger.info('PostgreSQL extension "pg_trgm" is enabled.')
        if reset:
            KnowledgeEntry.__table__.drop(conn, checkfirst=True)
            logger.info('Table "knowledge_base" dropped.')
        metadata.create_all(conn)
    logger.info('Table "knowledge_base" and its indexes are in place.')


def load_entries(path: Path) -> List[dict]:
    """Read the JSON array of entries from `path`."""
    with open(path, encoding="utf-8") as f:
        entries = json.load(f)
    if not isinstance(entries, list):
        raise ValueError(f"{path} must contain a JSON array of entries")
    return entries


def _counter_value(raw: dict, counter: str) -> int:
    """Counter from a seed record; missing or negative values load as 0."""
    return max(0, int(raw.get(counter) or 0))


@transactional
def insert_entries(session: Session, entries: List[dict]) -> int:
    """
    Insert entries, skipping ids that already exist.

    Counters present in the file are kept (negative values are clamped to 0).
    Returns the number of inserted rows.
    """
    inserted = 0
    for raw in entries:
        entry_id = raw.get("id") or generate_entry_id()
        if session.get(KnowledgeEntry, entry_id) is not None:
            continue
        try:
            payload = KnowledgeEntryPayload.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Skipping entry {entry_id}: {e.error_count()} invalid field(s).")
            continue
        content = payload.model_dump()
        content["type"] = payload.type.value
        session.add(KnowledgeEntry(
            id=entry_id,
            **content,
            **{counter: _counter_value(raw, counter) for counter in COUNTER_FIELDS},
        ))
        inserted += 1
    return inserted


def seed(path: Path, reset: bool = False) -> int:
    """Prepare the schema and load `path`. Returns the number of inserted entries."""
    prepare_schema(reset=reset)
    entries = load_entries(path)
    logger.info(f"Found {len(entries)} entries in {path.name}.")
    inserted = insert_entries(entries=entries)
    logger.info(f"Seeding complete. Inserted {inserted} of {len(entries)} entries.")
    return inserted


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--reset", is_flag=True, help="Drop the existing table before seeding.")
def main(path: Path, reset: bool):
    """Create the knowledge_base table and load entries from a JSON file."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    try:
        seed(path, reset=reset)
    except Exception:
        logger.exception("An error occurred during database seeding.")
        sys.exit(1)


if __name__ == "__main__":
    main()  # pylint: disable=no-value-for-parameter
