"""
Read-only views: live pool standings and the generated final bracket.
No auth; same data the public draw pages show.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from clubbracket.database import get_session
from clubbracket.models.match import KNOCKOUT_ROUND_ORDER
from clubbracket.services.bracket_store import SqlBracketStore
from clubbracket.services.pool_standings import compute_pool_standings, find_incomplete_matches
from clubbracket.utils.authz import get_tournament_or_404

router = APIRouter()

_ROUND_RANK = {r.value: i for i, r in enumerate(KNOCKOUT_ROUND_ORDER)}


class StandingsRow(BaseModel):
    position: int
    registration_id: int
    team_name: Optional[str] = None
    wins: int
    pair_total_rank: Optional[int] = None


class PoolStandingsResponse(BaseModel):
    pool_id: int
    pool_number: int
    rows: List[StandingsRow]


class StandingsResponse(BaseModel):
    tournament_id: int
    results_complete: bool
    pending_match_ids: List[int] = []
    pools: List[PoolStandingsResponse]


class BracketMatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    round_type: str
    round_number: int
    match_order: Optional[int] = None
    team1_registration_id: Optional[int] = None
    team2_registration_id: Optional[int] = None
    winner_registration_id: Optional[int] = None
    is_bye: bool
    status: str


@router.get("/tournaments/{tournament_id}/pools/standings", response_model=StandingsResponse)
def get_pool_standings(tournament_id: int, session: Session = Depends(get_session)):
    """Current standings per pool (pool_number order). Only completed matches count;
    unfinished ones are listed in pending_match_ids."""
    get_tournament_or_404(session, tournament_id)
    store = SqlBracketStore(session)

    pools = store.list_pools(tournament_id)
    registrations = store.list_pool_registrations(tournament_id)
    pool_matches = store.list_pool_matches(tournament_id)

    standings = compute_pool_standings(pools, registrations, pool_matches, require_complete=False)
    pending = find_incomplete_matches(pool_matches)
    names = {r.id: r.team_name for r in registrations}

    return StandingsResponse(
        tournament_id=tournament_id,
        results_complete=bool(pool_matches) and not pending,
        pending_match_ids=pending,
        pools=[
            PoolStandingsResponse(
                pool_id=s.pool_id,
                pool_number=s.pool_number,
                rows=[
                    StandingsRow(
                        position=r.position,
                        registration_id=r.registration_id,
                        team_name=names.get(r.registration_id),
                        wins=r.wins,
                        pair_total_rank=r.pair_total_rank,
                    )
                    for r in s.ranked
                ],
            )
            for s in standings
        ],
    )


@router.get("/tournaments/{tournament_id}/bracket", response_model=List[BracketMatchResponse])
def get_final_bracket(tournament_id: int, session: Session = Depends(get_session)):
    """Final bracket matches, widest round first, then match_order."""
    get_tournament_or_404(session, tournament_id)
    matches = SqlBracketStore(session).list_final_bracket_matches(tournament_id)
    matches = sorted(
        matches,
        key=lambda m: (_ROUND_RANK.get(m.round_type, len(_ROUND_RANK)), m.round_number, m.match_order or 0, m.id),
    )
    return [BracketMatchResponse.model_validate(m) for m in matches]
