"""
Pool standings: win tally + deterministic ranking for round-robin pools.

Ranking order inside a pool:
  1. more wins first
  2. lower pair_total_rank first (missing rank always loses the tie)
  3. otherwise keep registration input order (stable sort)

Inputs are duck-typed: anything with the TournamentMatch / Registration /
TournamentPool attributes works, so the same code runs on ORM rows and on
plain test doubles.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from clubbracket.models.match import MatchStatus
from clubbracket.services.errors import IncompleteResults


@dataclass
class RankedRegistration:
    registration_id: int
    pool_id: int
    wins: int
    pair_total_rank: Optional[int]
    position: int  # 1-based rank inside the pool


@dataclass
class PoolStanding:
    pool_id: int
    pool_number: int
    ranked: List[RankedRegistration] = field(default_factory=list)


def _status_value(status) -> str:
    return getattr(status, "value", status)


def find_incomplete_matches(pool_matches: Iterable) -> List[int]:
    """Ids of pool matches whose status is anything but completed, in id order."""
    return sorted(
        m.id for m in pool_matches if _status_value(m.status) != MatchStatus.completed.value
    )


def check_pool_results_complete(pool_matches: Sequence) -> None:
    incomplete = find_incomplete_matches(pool_matches)
    if incomplete:
        shown = ", ".join(str(i) for i in incomplete[:10])
        more = f" (+{len(incomplete) - 10} more)" if len(incomplete) > 10 else ""
        raise IncompleteResults(
            "All pool matches must be completed before generating the final bracket. "
            f"Not completed: match {shown}{more}",
            match_ids=incomplete,
        )


def find_unplayed_pools(pools: Sequence, registrations: Sequence, pool_matches: Sequence) -> List[int]:
    """pool_numbers of pools with two or more registrations but no pool match at all."""
    played = {m.pool_id for m in pool_matches}
    reg_counts: Dict[int, int] = {}
    for reg in registrations:
        if reg.pool_id is not None:
            reg_counts[reg.pool_id] = reg_counts.get(reg.pool_id, 0) + 1
    return [p.pool_number for p in pools if reg_counts.get(p.id, 0) >= 2 and p.id not in played]


def check_every_pool_played(pools: Sequence, registrations: Sequence, pool_matches: Sequence) -> None:
    # A single-registration pool has nothing to play and still sends its winner
    unplayed = find_unplayed_pools(pools, registrations, pool_matches)
    if unplayed:
        raise IncompleteResults(
            "Pool matches were never generated for pool "
            + ", ".join(str(n) for n in unplayed)
            + ". Generate the pool matches first."
        )


def tally_pool_wins(pool_matches: Sequence, require_complete: bool = True) -> Dict[int, Dict[int, int]]:
    """
    Count wins per registration, grouped by pool.

    Returns {pool_id: {registration_id: wins}}. A match with no recorded
    winner adds nothing; a match with no pool is not tallied. With
    require_complete (the default) any non-completed match raises
    IncompleteResults before anything is counted.
    """
    if require_complete:
        check_pool_results_complete(pool_matches)

    wins_by_pool: Dict[int, Dict[int, int]] = {}
    for match in pool_matches:
        if match.pool_id is None:
            continue
        pool_wins = wins_by_pool.setdefault(match.pool_id, {})
        winner_id = match.winner_registration_id
        if winner_id is None:
            continue
        if not require_complete and _status_value(match.status) != MatchStatus.completed.value:
            continue
        pool_wins[winner_id] = pool_wins.get(winner_id, 0) + 1
    return wins_by_pool


def ranking_key(wins: int, pair_total_rank: Optional[int]):
    return (-wins, pair_total_rank if pair_total_rank is not None else math.inf)


def rank_pool(registrations: Sequence, wins: Dict[int, int]) -> List[RankedRegistration]:
    """Rank one pool's registrations. Python's sort is stable, which keeps residual ties in input order."""
    ordered = sorted(
        registrations,
        key=lambda r: ranking_key(wins.get(r.id, 0), r.pair_total_rank),
    )
    return [
        RankedRegistration(
            registration_id=r.id,
            pool_id=r.pool_id,
            wins=wins.get(r.id, 0),
            pair_total_rank=r.pair_total_rank,
            position=idx,
        )
        for idx, r in enumerate(ordered, start=1)
    ]


def compute_pool_standings(
    pools: Sequence,
    registrations: Sequence,
    pool_matches: Sequence,
    require_complete: bool = True,
) -> List[PoolStanding]:
    """Standings for every pool, in the order the pools are given (pool_number order from the store)."""
    wins_by_pool = tally_pool_wins(pool_matches, require_complete=require_complete)

    regs_by_pool: Dict[int, List] = {}
    for reg in registrations:
        if reg.pool_id is None:
            continue
        regs_by_pool.setdefault(reg.pool_id, []).append(reg)

    standings: List[PoolStanding] = []
    for pool in pools:
        regs = regs_by_pool.get(pool.id, [])
        standings.append(
            PoolStanding(
                pool_id=pool.id,
                pool_number=pool.pool_number,
                ranked=rank_pool(regs, wins_by_pool.get(pool.id, {})),
            )
        )
    return standings
