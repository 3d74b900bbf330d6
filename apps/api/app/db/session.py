from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings


def build_engine(database_url: str, **kwargs):
    """Create an engine; SQLite gets FK enforcement and real SAVEPOINT support."""
    url = make_url(database_url)
    connect_args = {}
    if url.get_backend_name().startswith("postgresql"):
        connect_args["options"] = "-c timezone=utc"
    elif url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False

    engine = create_engine(
        database_url, pool_pre_ping=True, connect_args=connect_args, **kwargs
    )

    if url.get_backend_name() == "sqlite":
        # pysqlite defers BEGIN on its own, which breaks nested transactions
        @event.listens_for(engine, "connect")
        def _sqlite_on_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _sqlite_on_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run one use case as a single transaction.

    Commits when the block finishes; any exception rolls back every write
    made in the block and propagates unchanged.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
