"""
Database migrations for the ride store.

Uses SQLite ALTER TABLE ADD COLUMN for incremental schema evolution.
Each migration is idempotent: columns are only added if absent.

Databases written before summary_state existed marked a cached summary only
by a non-zero total_distance_km. reconcile_legacy_summaries() carries that
rule over once, so those rides are not recomputed needlessly.

Called automatically from init_db() after create_all() so both fresh
installs and existing DBs are handled without manual steps.
"""
import logging

from sqlalchemy import text

logger = logging.getLogger(__name__)


def run_migrations(engine) -> None:
    """Apply all pending schema migrations.

    Safe to call multiple times; checks column existence before altering.
    Supports SQLite only (uses PRAGMA table_info); other dialects get their
    schema from create_all().

    Args:
        engine: SQLAlchemy engine (SQLModel create_engine result).
    """
    if engine.dialect.name != "sqlite":
        return
    with engine.connect() as conn:
        added = _add_column_if_missing(
            conn, "ride", "summary_state", "VARCHAR NOT NULL DEFAULT 'unset'"
        )
        _add_column_if_missing(
            conn, "ride", "sample_revision", "INTEGER NOT NULL DEFAULT 0"
        )
        _add_column_if_missing(conn, "ride", "summary_computed_at", "DATETIME")
        if added:
            reconcile_legacy_summaries(conn)
        conn.commit()


def reconcile_legacy_summaries(conn) -> int:
    """Mark rides cached under the old distance-sentinel rule as computed.

    Returns:
        Number of rides updated.
    """
    result = conn.execute(
        text(
            "UPDATE ride SET summary_state = 'computed' "
            "WHERE summary_state = 'unset' "
            "AND total_distance_km IS NOT NULL AND total_distance_km != 0"
        )
    )
    if result.rowcount:
        logger.info("Marked %d legacy ride summaries as computed", result.rowcount)
    return result.rowcount


def _add_column_if_missing(conn, table: str, column: str, col_type: str) -> bool:
    """Add a column to a table if it doesn't already exist.

    Args:
        conn: SQLAlchemy connection.
        table: Table name (lowercase, as SQLite stores it).
        column: Column name to add.
        col_type: SQLite column definition, e.g. "INTEGER", "REAL", "TEXT".

    Returns:
        True if the column was added.
    """
    result = conn.execute(text(f"PRAGMA table_info({table})"))
    existing_columns = {row[1] for row in result}
    if column in existing_columns:
        return False
    conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}"))
    logger.info("Added column %s.%s", table, column)
    return True
