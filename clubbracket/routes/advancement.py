"""
Bracket advancement: pools → final bracket, and knockout round → next round.
Admin-only. Service errors propagate to the ProgressionError handler in main.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from clubbracket.database import get_session
from clubbracket.models.tournament import Tournament
from clubbracket.services.bracket_store import SqlBracketStore
from clubbracket.services.knockout_advancement import advance_knockout_round
from clubbracket.services.pools_final_orchestrator import advance_pools_to_final
from clubbracket.utils.authz import require_pools_tournament_admin, require_tournament_admin

router = APIRouter()


class PlannedMatchResponse(BaseModel):
    round_type: str
    round_number: int
    match_order: int
    team1_registration_id: Optional[int] = None
    team2_registration_id: Optional[int] = None
    is_bye: bool
    status: str
    winner_registration_id: Optional[int] = None


class PoolsFinalResponse(BaseModel):
    tournament_id: int
    num_pools: int
    qualified_count: int
    matches_created: int
    round_type: Optional[str] = None
    dry_run: bool = False
    planned_matches: Optional[List[PlannedMatchResponse]] = None


class NextRoundResponse(BaseModel):
    tournament_id: int
    current_round: str
    next_round: str
    matches_created: int


def get_bracket_store(session: Session = Depends(get_session)) -> SqlBracketStore:
    return SqlBracketStore(session)


@router.post(
    "/tournaments/{tournament_id}/advance/pools-final",
    response_model=PoolsFinalResponse,
)
def advance_pools_final(
    tournament_id: int,
    dry_run: bool = Query(False),
    force: bool = Query(False),
    tournament: Tournament = Depends(require_pools_tournament_admin),
    store: SqlBracketStore = Depends(get_bracket_store),
) -> PoolsFinalResponse:
    """Generate the final bracket from completed pools. Replaces any existing final bracket.
    dry_run computes the bracket without writing it; force allows replacing a bracket already in play."""
    result = advance_pools_to_final(store, tournament.id, dry_run=dry_run, force=force)
    return PoolsFinalResponse(**result.to_dict())


@router.post(
    "/tournaments/{tournament_id}/advance/final-next-round",
    response_model=NextRoundResponse,
)
def advance_final_next_round(
    tournament_id: int,
    tournament: Tournament = Depends(require_tournament_admin),
    store: SqlBracketStore = Depends(get_bracket_store),
) -> NextRoundResponse:
    """Generate the next knockout round once every match of the current round has a winner."""
    result = advance_knockout_round(store, tournament.id)
    return NextRoundResponse(**result.to_dict())
