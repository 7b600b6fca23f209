"""Qualifier selection: pool winner + runner-up for the final bracket."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from clubbracket.services.errors import InsufficientQualifiers
from clubbracket.services.pool_standings import PoolStanding, RankedRegistration


@dataclass
class PoolQualifiers:
    pool_id: int
    pool_number: int
    winner: RankedRegistration
    runner_up: Optional[RankedRegistration] = None


@dataclass
class QualifierSelection:
    pools: List[PoolQualifiers]

    @property
    def winners(self) -> List[int]:
        return [p.winner.registration_id for p in self.pools]

    @property
    def runners(self) -> List[Optional[int]]:
        """Runner-up per pool position; None where the pool had a single registration."""
        return [p.runner_up.registration_id if p.runner_up else None for p in self.pools]

    @property
    def num_pools(self) -> int:
        return len(self.pools)

    @property
    def qualified_count(self) -> int:
        return len(self.pools) + sum(1 for p in self.pools if p.runner_up is not None)


def select_qualifiers(standings: Sequence[PoolStanding]) -> QualifierSelection:
    """
    Take ranked[0] as winner and ranked[1] (if any) as runner-up of every pool.

    Empty pools are skipped, so positions in the selection follow the pool
    order of the pools that actually qualify someone.
    """
    pools: List[PoolQualifiers] = []
    for standing in standings:
        if not standing.ranked:
            continue
        pools.append(
            PoolQualifiers(
                pool_id=standing.pool_id,
                pool_number=standing.pool_number,
                winner=standing.ranked[0],
                runner_up=standing.ranked[1] if len(standing.ranked) > 1 else None,
            )
        )

    selection = QualifierSelection(pools=pools)
    if not selection.winners or not any(r is not None for r in selection.runners):
        raise InsufficientQualifiers(
            "Unable to determine the first and second of each pool. "
            "Check that pools have at least 2 registrations."
        )
    return selection
