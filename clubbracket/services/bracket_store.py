"""
Storage adapter for bracket progression.

The orchestrator only talks to a BracketStore. SqlBracketStore is the
SQLModel implementation used by the API; tests can pass any object with
the same methods.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from clubbracket.models.match import RoundType, TournamentMatch
from clubbracket.models.pool import TournamentPool
from clubbracket.models.registration import Registration
from clubbracket.models.tournament import Tournament
from clubbracket.services.bracket_pairing import PlannedMatch
from clubbracket.services.errors import Conflict, StorageFailure
from clubbracket.services.generation_lock import acquire_generation_lock, release_generation_lock

logger = logging.getLogger(__name__)

# Bracket rows are the ones outside pools that are not qualification rounds
NON_BRACKET_ROUND_TYPES = (RoundType.pool.value, RoundType.qualifications.value)


class BracketStore(Protocol):
    def get_tournament(self, tournament_id: int) -> Optional[Tournament]: ...

    def list_pools(self, tournament_id: int) -> List[TournamentPool]: ...

    def list_pool_registrations(self, tournament_id: int) -> List[Registration]: ...

    def list_pool_matches(self, tournament_id: int) -> List[TournamentMatch]: ...

    def list_final_bracket_matches(self, tournament_id: int) -> List[TournamentMatch]: ...

    def replace_final_bracket(self, tournament_id: int, matches: Sequence[PlannedMatch]) -> int: ...

    def insert_bracket_matches(self, tournament_id: int, matches: Sequence[PlannedMatch]) -> int: ...

    def acquire_generation_lock(self, tournament_id: int) -> str: ...

    def release_generation_lock(self, tournament_id: int, token: str) -> bool: ...


def planned_to_row(tournament_id: int, planned: PlannedMatch) -> TournamentMatch:
    return TournamentMatch(
        tournament_id=tournament_id,
        pool_id=None,
        round_type=planned.round_type,
        round_number=planned.round_number,
        match_order=planned.match_order,
        team1_registration_id=planned.team1_registration_id,
        team2_registration_id=planned.team2_registration_id,
        winner_registration_id=planned.winner_registration_id,
        is_bye=planned.is_bye,
        status=planned.status,
    )


class SqlBracketStore:
    def __init__(self, session: Session, lock_ttl_seconds: Optional[int] = None):
        self.session = session
        self.lock_ttl_seconds = lock_ttl_seconds

    @contextmanager
    def _storage_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.session.rollback()
            logger.warning("%s hit an integrity error, transaction rolled back: %s", action, e.orig)
            raise Conflict(f"{action} conflicted with a concurrent write. Retry shortly.") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("%s failed, transaction rolled back", action)
            raise StorageFailure(f"{action} failed: {e}") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_tournament(self, tournament_id: int) -> Optional[Tournament]:
        with self._storage_errors("Loading tournament"):
            return self.session.get(Tournament, tournament_id)

    def list_pools(self, tournament_id: int) -> List[TournamentPool]:
        with self._storage_errors("Loading pools"):
            return list(
                self.session.exec(
                    select(TournamentPool)
                    .where(TournamentPool.tournament_id == tournament_id)
                    .order_by(TournamentPool.pool_number, TournamentPool.id)
                ).all()
            )

    def list_pool_registrations(self, tournament_id: int) -> List[Registration]:
        # Id order is the input order the ranker keeps for residual ties
        with self._storage_errors("Loading registrations"):
            return list(
                self.session.exec(
                    select(Registration)
                    .where(
                        Registration.tournament_id == tournament_id,
                        Registration.pool_id.is_not(None),
                    )
                    .order_by(Registration.id)
                ).all()
            )

    def list_pool_matches(self, tournament_id: int) -> List[TournamentMatch]:
        with self._storage_errors("Loading pool matches"):
            return list(
                self.session.exec(
                    select(TournamentMatch)
                    .where(
                        TournamentMatch.tournament_id == tournament_id,
                        TournamentMatch.round_type == RoundType.pool.value,
                    )
                    .order_by(TournamentMatch.id)
                ).all()
            )

    def list_final_bracket_matches(self, tournament_id: int) -> List[TournamentMatch]:
        with self._storage_errors("Loading final bracket"):
            return list(
                self.session.exec(
                    select(TournamentMatch)
                    .where(
                        TournamentMatch.tournament_id == tournament_id,
                        TournamentMatch.pool_id.is_(None),
                        TournamentMatch.round_type.not_in(NON_BRACKET_ROUND_TYPES),
                    )
                    .order_by(TournamentMatch.round_number, TournamentMatch.match_order, TournamentMatch.id)
                ).all()
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def replace_final_bracket(self, tournament_id: int, matches: Sequence[PlannedMatch]) -> int:
        """Delete the current final bracket and insert `matches` in one transaction."""
        with self._storage_errors("Replacing final bracket"):
            existing = self.list_final_bracket_matches(tournament_id)
            for match in existing:
                self.session.delete(match)
            # Deletes must hit the DB before inserts reuse the same (round, order) keys
            self.session.flush()

            rows = [planned_to_row(tournament_id, p) for p in matches]
            self.session.add_all(rows)
            self.session.commit()

        logger.info(
            "Final bracket replaced: tournament_id=%s deleted=%s inserted=%s",
            tournament_id,
            len(existing),
            len(rows),
        )
        return len(rows)

    def insert_bracket_matches(self, tournament_id: int, matches: Sequence[PlannedMatch]) -> int:
        with self._storage_errors("Inserting bracket matches"):
            rows = [planned_to_row(tournament_id, p) for p in matches]
            self.session.add_all(rows)
            self.session.commit()
        return len(rows)

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    def acquire_generation_lock(self, tournament_id: int) -> str:
        return acquire_generation_lock(self.session, tournament_id, ttl_seconds=self.lock_ttl_seconds)

    def release_generation_lock(self, tournament_id: int, token: str) -> bool:
        return release_generation_lock(self.session, tournament_id, token)
