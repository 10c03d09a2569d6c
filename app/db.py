# app/db.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    # PostgreSQL: timeout su connessione e su ogni statement
    return {
        "pool_pre_ping": True,
        "pool_timeout": settings.db_pool_timeout,
        "connect_args": {
            "connect_timeout": settings.db_connect_timeout,
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
        },
    }


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
