"""Engine and session factory for the formdesk database.

SQLite (the default) does not enforce foreign keys unless asked to, so every
new SQLite connection switches them on; this keeps the `ON DELETE CASCADE`
from forms to fields and responses intact outside the ORM too.
"""
# db/session.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from formdesk.app.core.config import settings

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
    pool_pre_ping=not _is_sqlite,
)
LocalSession = sessionmaker(autoflush=False, bind=engine)

if _is_sqlite:
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db():
    """Request-scoped session for FastAPI dependencies."""
    db = LocalSession()
    try:
        yield db
    finally:
        db.close()
