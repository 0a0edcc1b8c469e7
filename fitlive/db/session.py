from typing import Iterator

from sqlalchemy.orm import Session

from fitlive.db.base import SessionLocal


def get_db() -> Iterator[Session]:
    """One session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
