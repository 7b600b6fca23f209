"""
Pools → Final Bracket Orchestrator

Turns completed pool results into the first round of the final knockout
bracket:
1. Validate (format, pools, registrations, every pool match completed)
2. Compute standings, qualifiers and cross-pool pairings in memory
3. Replace the existing final bracket (delete + insert, one transaction)

Nothing is written until step 3, so a rejected or failed run leaves the
previous bracket in place. The whole run holds the tournament's
generation lock; a concurrent run fails with Conflict.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from clubbracket.models.match import MatchStatus
from clubbracket.services.bracket_pairing import PlannedMatch, build_first_round
from clubbracket.services.bracket_store import BracketStore
from clubbracket.services.errors import (
    Conflict,
    IncompleteResults,
    NoPools,
    NoRegistrations,
    ProgressionError,
    TournamentNotFound,
    TypeMismatch,
)
from clubbracket.services.generation_lock import held_generation_lock
from clubbracket.services.pool_standings import (
    check_every_pool_played,
    check_pool_results_complete,
    compute_pool_standings,
)
from clubbracket.services.qualifier_selection import select_qualifiers

logger = logging.getLogger(__name__)

STARTED_STATUSES = (MatchStatus.in_progress.value, MatchStatus.completed.value)


class ProgressionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REJECTED = "rejected"
    COMPUTING = "computing"
    REPLACING = "replacing"
    DONE = "done"


@dataclass
class PoolsFinalResult:
    tournament_id: int
    num_pools: int = 0
    qualified_count: int = 0
    matches_created: int = 0
    round_type: Optional[str] = None
    dry_run: bool = False
    state: ProgressionState = ProgressionState.IDLE
    planned_matches: List[PlannedMatch] = field(default_factory=list)

    def to_dict(self):
        result = {
            "tournament_id": self.tournament_id,
            "num_pools": self.num_pools,
            "qualified_count": self.qualified_count,
            "matches_created": self.matches_created,
            "round_type": self.round_type,
            "dry_run": self.dry_run,
        }
        if self.dry_run:
            result["planned_matches"] = [m.to_dict() for m in self.planned_matches]
        return result


def _ensure_bracket_not_started(existing) -> None:
    started = [
        m.id
        for m in existing
        if not m.is_bye and getattr(m.status, "value", m.status) in STARTED_STATUSES
    ]
    if started:
        raise Conflict(
            "The final bracket has already started (matches "
            + ", ".join(str(i) for i in started[:10])
            + "). Regenerating would discard played results; pass force to override."
        )


def advance_pools_to_final(
    store: BracketStore,
    tournament_id: int,
    dry_run: bool = False,
    force: bool = False,
) -> PoolsFinalResult:
    """
    Generate (or regenerate) the final bracket from pool standings.

    Caller authorization is checked by the route before this is called.

    Args:
        store: Storage adapter (SqlBracketStore in the API)
        tournament_id: Tournament ID
        dry_run: Validate and compute only; no lock, no writes
        force: Replace the bracket even if some of its matches have started

    Returns:
        PoolsFinalResult with num_pools, qualified_count, matches_created

    Raises:
        ProgressionError subclass; `state` on the error says where it stopped
    """
    result = PoolsFinalResult(tournament_id=tournament_id, dry_run=dry_run)

    # Read-only existence check, before any lock row is written
    tournament = store.get_tournament(tournament_id)
    if tournament is None:
        raise TournamentNotFound(f"Tournament {tournament_id} not found", state=ProgressionState.VALIDATING.value)

    if dry_run:
        _run(store, tournament, result, force=force)
        return result

    with held_generation_lock(store, tournament_id):
        _run(store, tournament, result, force=force)
    return result


def _run(store: BracketStore, tournament, result: PoolsFinalResult, force: bool) -> None:
    tournament_id = tournament.id
    try:
        # ====================================================================
        # Validate (strict order, first failure wins, no writes)
        # ====================================================================
        result.state = ProgressionState.VALIDATING

        if not tournament.is_pools_based:
            raise TypeMismatch(
                f"Tournament {tournament_id} is not a pools + final bracket format "
                f"(type: {getattr(tournament.tournament_type, 'value', tournament.tournament_type)}). "
                "The final bracket cannot be generated from pools."
            )

        pools = store.list_pools(tournament_id)
        if not pools:
            raise NoPools("No pools found for this tournament. Generate the pools first.")

        registrations = store.list_pool_registrations(tournament_id)
        if not registrations:
            raise NoRegistrations(
                "No registrations assigned to a pool. Check that registrations were drawn into the pools."
            )

        pool_matches = store.list_pool_matches(tournament_id)
        if not pool_matches:
            raise IncompleteResults("No pool matches found for this tournament. Generate the pool matches first.")
        check_pool_results_complete(pool_matches)
        check_every_pool_played(pools, registrations, pool_matches)

        # ====================================================================
        # Compute (in memory)
        # ====================================================================
        result.state = ProgressionState.COMPUTING

        standings = compute_pool_standings(pools, registrations, pool_matches)
        selection = select_qualifiers(standings)
        plan = build_first_round(selection.winners, selection.runners)

        result.num_pools = selection.num_pools
        result.qualified_count = selection.qualified_count
        result.round_type = plan.round_type
        result.planned_matches = plan.matches

        if result.dry_run:
            result.state = ProgressionState.DONE
            logger.info(
                "Pools-final dry run: tournament_id=%s num_pools=%s qualified=%s round_type=%s matches=%s",
                tournament_id,
                result.num_pools,
                result.qualified_count,
                result.round_type,
                len(plan.matches),
            )
            return

        existing = store.list_final_bracket_matches(tournament_id)
        if existing and not force:
            _ensure_bracket_not_started(existing)

        # ====================================================================
        # Replace (single transaction)
        # ====================================================================
        result.state = ProgressionState.REPLACING

        result.matches_created = store.replace_final_bracket(tournament_id, plan.matches)

        result.state = ProgressionState.DONE
        logger.info(
            "Final bracket generated from pools: tournament_id=%s num_pools=%s qualified=%s "
            "round_type=%s matches_created=%s replaced=%s",
            tournament_id,
            result.num_pools,
            result.qualified_count,
            result.round_type,
            result.matches_created,
            len(existing),
        )

    except ProgressionError as e:
        if e.state is None:
            e.state = result.state.value
        if result.state in (ProgressionState.VALIDATING, ProgressionState.COMPUTING) and not e.retryable:
            result.state = ProgressionState.REJECTED
            logger.info("Pools-final rejected: tournament_id=%s kind=%s: %s", tournament_id, e.kind, e.message)
        else:
            logger.warning(
                "Pools-final failed: tournament_id=%s state=%s kind=%s: %s",
                tournament_id,
                result.state.value,
                e.kind,
                e.message,
            )
        raise
