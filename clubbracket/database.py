"""
Engine and session wiring.

DATABASE_URL (from the environment or .env) picks the database; SQLite is
the default for local runs and tests. SQL_ECHO=1 logs every statement.
"""
import os
from typing import Any, Generator

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clubbracket.db")


def build_engine(url: str, **kwargs: Any) -> Engine:
    """Engine for `url`; SQLite connections are shared with the TestClient / worker threads."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    echo = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")
    return create_engine(url, echo=echo, **kwargs)


engine: Engine = build_engine(DATABASE_URL)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def init_db(bind: Engine = None) -> None:
    """Create every clubbracket table on `bind` (the app engine by default)."""
    import clubbracket.models  # noqa: F401  registers the table models

    SQLModel.metadata.create_all(bind or engine)
