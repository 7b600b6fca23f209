"""
Knockout advancement: build the next final-bracket round from the winners of
the current one. Winners are taken in match_order and paired consecutively
(W1 vs W2, W3 vs W4, ...); an odd one out gets a bye.

A first-round match left without an opponent (a pool that sent no
runner-up) never becomes decided on its own: the bracket stalls on that
round until the match is marked completed with a winner.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from clubbracket.models.match import KNOCKOUT_ROUND_ORDER, MatchStatus
from clubbracket.services.bracket_pairing import PlannedMatch
from clubbracket.services.bracket_store import BracketStore
from clubbracket.services.errors import NoKnockoutRound, TournamentNotFound
from clubbracket.services.generation_lock import held_generation_lock

logger = logging.getLogger(__name__)

_ROUND_VALUES = [r.value for r in KNOCKOUT_ROUND_ORDER]


@dataclass
class NextRoundResult:
    tournament_id: int
    current_round: str
    next_round: str
    matches_created: int = 0
    planned_matches: List[PlannedMatch] = field(default_factory=list)

    def to_dict(self):
        return {
            "tournament_id": self.tournament_id,
            "current_round": self.current_round,
            "next_round": self.next_round,
            "matches_created": self.matches_created,
        }


def _is_decided(match) -> bool:
    return getattr(match.status, "value", match.status) == MatchStatus.completed.value and (
        match.winner_registration_id is not None
    )


def find_round_to_advance(matches: Sequence) -> Optional[Tuple[str, str]]:
    """
    First round (widest first) that is fully decided and whose next round
    does not exist yet. Returns (current_round, next_round) or None.
    """
    by_round: Dict[str, List] = {}
    for m in matches:
        by_round.setdefault(getattr(m.round_type, "value", m.round_type), []).append(m)

    for idx, round_type in enumerate(_ROUND_VALUES[:-1]):
        round_matches = by_round.get(round_type)
        if not round_matches:
            continue
        if not all(_is_decided(m) for m in round_matches):
            continue
        next_round = _ROUND_VALUES[idx + 1]
        if by_round.get(next_round):
            continue
        return round_type, next_round
    return None


def plan_next_round(round_matches: Sequence, next_round: str) -> List[PlannedMatch]:
    ordered = sorted(round_matches, key=lambda m: (m.match_order or 0, m.id or 0))
    winners = [m.winner_registration_id for m in ordered]

    planned: List[PlannedMatch] = []
    for order, i in enumerate(range(0, len(winners), 2), start=1):
        team1 = winners[i]
        team2 = winners[i + 1] if i + 1 < len(winners) else None
        if team2 is None:
            planned.append(
                PlannedMatch(
                    round_type=next_round,
                    match_order=order,
                    team1_registration_id=team1,
                    team2_registration_id=None,
                    is_bye=True,
                    status=MatchStatus.completed.value,
                    winner_registration_id=team1,
                )
            )
        else:
            planned.append(
                PlannedMatch(
                    round_type=next_round,
                    match_order=order,
                    team1_registration_id=team1,
                    team2_registration_id=team2,
                )
            )
    return planned


def advance_knockout_round(store: BracketStore, tournament_id: int) -> NextRoundResult:
    """
    Generate the next knockout round for a tournament.

    Raises:
        TournamentNotFound: unknown tournament
        NoKnockoutRound: no bracket, no fully decided round, or fewer than two winners
        Conflict: another bracket generation holds the lock
    """
    if store.get_tournament(tournament_id) is None:
        raise TournamentNotFound(f"Tournament {tournament_id} not found")

    with held_generation_lock(store, tournament_id):
        matches = store.list_final_bracket_matches(tournament_id)
        if not matches:
            raise NoKnockoutRound("No final bracket matches found for this tournament.")

        found = find_round_to_advance(matches)
        if found is None:
            raise NoKnockoutRound(
                "No next round can be generated. Check that every match of the current round "
                "is completed with a winner and that the next round does not exist yet."
            )
        current_round, next_round = found

        round_matches = [m for m in matches if getattr(m.round_type, "value", m.round_type) == current_round]
        if len(round_matches) < 2:
            raise NoKnockoutRound(f"Round {current_round} has a single winner; there is no next round to play.")

        planned = plan_next_round(round_matches, next_round)
        created = store.insert_bracket_matches(tournament_id, planned)

    logger.info(
        "Next knockout round generated: tournament_id=%s current_round=%s next_round=%s created=%s",
        tournament_id,
        current_round,
        next_round,
        created,
    )
    return NextRoundResult(
        tournament_id=tournament_id,
        current_round=current_round,
        next_round=next_round,
        matches_created=created,
        planned_matches=planned,
    )
