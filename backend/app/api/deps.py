from collections.abc import Callable, Generator

from fastapi import Header
from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    """Session source for work that outlives the request, such as background tasks."""
    return SessionLocal


def get_actor_id(x_actor_id: str | None = Header(default=None, max_length=36)) -> str | None:
    if x_actor_id is None:
        return None
    return x_actor_id.strip() or None
