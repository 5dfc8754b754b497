"""SQLModel engine singleton and schema bootstrap."""

from sqlalchemy import event
from sqlmodel import SQLModel, create_engine

from ridelog.config import get_settings

_engine = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores FOREIGN KEY / ON DELETE CASCADE unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configure_engine(engine):
    """Attach SQLite connection hooks to an engine and return it."""
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_db(engine) -> None:
    """Create tables and apply migrations. Safe to call repeatedly."""
    # Import models so metadata is populated before create_all
    from ridelog.models.ride import Ride, Sample  # noqa
    SQLModel.metadata.create_all(engine)
    from ridelog.db.migrations import run_migrations
    run_migrations(engine)


def get_engine():
    """Return the module-level engine, creating it on first call."""
    global _engine
    if _engine is None:
        settings = get_settings()
        connect_args = {}
        if settings.database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = configure_engine(
            create_engine(
                settings.database_url,
                echo=settings.echo_sql,
                connect_args=connect_args,
            )
        )
        init_db(_engine)
    return _engine
