"""
Per-tournament exclusive lock for bracket generation.

A BracketGenerationLock row is inserted and committed before a run starts
and deleted when it ends. The primary key makes a second concurrent run
fail with Conflict instead of racing on delete+insert. Rows older than
BRACKET_LOCK_TTL_SECONDS belong to a crashed run and can be taken over.
"""
import logging
import os
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from clubbracket.models.generation_lock import BracketGenerationLock
from clubbracket.services.errors import Conflict, StorageFailure

logger = logging.getLogger(__name__)

LOCK_TTL_SECONDS = int(os.getenv("BRACKET_LOCK_TTL_SECONDS", "120"))


def acquire_generation_lock(
    session: Session,
    tournament_id: int,
    ttl_seconds: Optional[int] = None,
    now: Optional[datetime] = None,
) -> str:
    """Insert the lock row and commit. Returns the token needed to release it."""
    ttl = LOCK_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    now = now or datetime.utcnow()
    token = str(uuid.uuid4())

    try:
        existing = session.get(BracketGenerationLock, tournament_id)
        if existing is not None:
            age = now - existing.acquired_at
            if age < timedelta(seconds=ttl):
                raise Conflict(
                    f"Bracket generation already in progress for tournament {tournament_id}. Retry shortly."
                )
            logger.warning(
                "Taking over stale bracket lock: tournament_id=%s age_seconds=%s",
                tournament_id,
                int(age.total_seconds()),
            )
            session.delete(existing)
            session.flush()

        session.add(BracketGenerationLock(tournament_id=tournament_id, token=token, acquired_at=now))
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise Conflict(
            f"Bracket generation already in progress for tournament {tournament_id}. Retry shortly."
        ) from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Acquiring bracket lock failed for tournament %s", tournament_id)
        raise StorageFailure(f"Could not acquire bracket lock: {e}") from e

    logger.debug("Bracket lock acquired: tournament_id=%s token=%s", tournament_id, token)
    return token


def release_generation_lock(session: Session, tournament_id: int, token: str) -> bool:
    """Delete the lock row if it is still ours. A failed release is logged; the TTL reclaims the row."""
    try:
        row = session.get(BracketGenerationLock, tournament_id)
        if row is None or row.token != token:
            logger.warning("Bracket lock for tournament %s no longer held by token %s", tournament_id, token)
            return False
        session.delete(row)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Releasing bracket lock failed for tournament %s", tournament_id)
        return False
    return True


@contextmanager
def held_generation_lock(store, tournament_id: int) -> Iterator[str]:
    """Hold the store's generation lock for the duration of the block."""
    token = store.acquire_generation_lock(tournament_id)
    try:
        yield token
    finally:
        store.release_generation_lock(tournament_id, token)
