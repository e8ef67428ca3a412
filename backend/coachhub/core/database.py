from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from coachhub.core.config import settings

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

if settings.DATABASE_URL.startswith("sqlite:///"):
    sqlite_path = settings.DATABASE_URL.replace("sqlite:///", "", 1)
    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
    pool_pre_ping=not _is_sqlite,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """Request-scoped session for route dependencies."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def sibling_session_factory(db: Session) -> sessionmaker:
    """Session factory bound to the same engine as `db`.

    Used by fan-out reads that need one session per worker thread.
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())
