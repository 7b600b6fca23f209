"""
Authorization guards for admin-only tournament operations.

Authentication happens upstream: the gateway forwards the caller's user id
in the X-User-Id header. These guards answer "is this caller an active
admin of the tournament's club"; the pools-final guard rejects a
non-pools format first, whatever the caller.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlmodel import Session, select

from clubbracket.database import get_session
from clubbracket.models.club_admin import ClubAdmin
from clubbracket.models.tournament import Tournament
from clubbracket.services.errors import Forbidden, TournamentNotFound, TypeMismatch


def is_active_club_admin(session: Session, user_id: str, club_id: int) -> bool:
    """True when user_id has an activated admin membership for club_id."""
    admin = session.exec(
        select(ClubAdmin).where(
            ClubAdmin.user_id == user_id,
            ClubAdmin.club_id == club_id,
            ClubAdmin.activated_at.is_not(None),
        )
    ).first()
    return admin is not None


def get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound(f"Tournament {tournament_id} not found")
    return tournament


def _require_club_admin(session: Session, x_user_id: Optional[str], tournament: Tournament) -> None:
    if not x_user_id or not is_active_club_admin(session, x_user_id, tournament.club_id):
        raise Forbidden("Only active admins of the tournament's club can manage its bracket")


def require_tournament_admin(
    tournament_id: int,
    x_user_id: Optional[str] = Header(default=None),
    session: Session = Depends(get_session),
) -> Tournament:
    """
    FastAPI dependency: the caller must administer the tournament's club.

    Raises:
        TournamentNotFound: Tournament does not exist (404)
        Forbidden: No caller id, or caller is not an active club admin (403)
    """
    tournament = get_tournament_or_404(session, tournament_id)
    _require_club_admin(session, x_user_id, tournament)
    return tournament


def require_pools_tournament_admin(
    tournament_id: int,
    x_user_id: Optional[str] = Header(default=None),
    session: Session = Depends(get_session),
) -> Tournament:
    """Same as require_tournament_admin, but the format is checked before the caller:
    a knockout-only tournament is a 400 TypeMismatch for everyone."""
    tournament = get_tournament_or_404(session, tournament_id)
    if not tournament.is_pools_based:
        raise TypeMismatch(
            f"Tournament {tournament_id} is not a pools + final bracket format "
            f"(type: {getattr(tournament.tournament_type, 'value', tournament.tournament_type)}). "
            "The final bracket cannot be generated from pools.",
            state="validating",
        )
    _require_club_admin(session, x_user_id, tournament)
    return tournament
