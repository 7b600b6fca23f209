"""
Final bracket R1 pairing: cross-pool winner vs runner-up.

Matchups: winner of pool i meets the runner-up of pool (n - 1 - i) mod n,
the reverse rotation (2 pools: W0-R1, W1-R0; 4 pools: W0-R3, W1-R2, W2-R1,
W3-R0). With an even pool count nobody meets their own pool's runner-up.
With an odd count the middle pool (i == (n - 1) / 2) maps onto itself.

Round label comes from the number of qualifiers:
  4 -> semis, 8 -> quarters, 16 -> round_of_16, 32 -> round_of_32,
  anything else -> quarters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from clubbracket.models.match import MatchStatus, RoundType

ROUND_LABELS: Dict[int, RoundType] = {
    4: RoundType.semis,
    8: RoundType.quarters,
    16: RoundType.round_of_16,
    32: RoundType.round_of_32,
}
DEFAULT_ROUND_LABEL = RoundType.quarters


@dataclass
class PlannedMatch:
    """A bracket match computed in memory, not yet persisted."""
    round_type: str
    match_order: int
    team1_registration_id: Optional[int]
    team2_registration_id: Optional[int]
    round_number: int = 1
    is_bye: bool = False
    status: str = MatchStatus.scheduled.value
    winner_registration_id: Optional[int] = None

    def to_dict(self):
        return {
            "round_type": self.round_type,
            "round_number": self.round_number,
            "match_order": self.match_order,
            "team1_registration_id": self.team1_registration_id,
            "team2_registration_id": self.team2_registration_id,
            "is_bye": self.is_bye,
            "status": self.status,
            "winner_registration_id": self.winner_registration_id,
        }


@dataclass
class FirstRoundPlan:
    round_type: str
    qualified_count: int
    pairs: List[Tuple[int, Optional[int]]]
    matches: List[PlannedMatch] = field(default_factory=list)


def round_label_for(qualified_count: int) -> str:
    return ROUND_LABELS.get(qualified_count, DEFAULT_ROUND_LABEL).value


def _cross_pool_index(i: int, num_pools: int) -> int:
    return (num_pools - 1 - i + num_pools) % num_pools


def cross_pool_pairs(winners: Sequence[int], runners: Sequence[Optional[int]]) -> List[Tuple[int, Optional[int]]]:
    """
    Pair winners with runners-up from other pools.

    Both sequences are indexed by pool position. A missing runner (None)
    leaves the opponent slot unresolved rather than shifting the others.
    """
    num_pools = len(winners)
    assert num_pools >= 1, "at least one pool winner is required"
    assert len(runners) == num_pools, f"Expected {num_pools} runner slots, got {len(runners)}"

    qualified = num_pools + sum(1 for r in runners if r is not None)
    if num_pools == 2 and qualified == 4:
        # Fixed 2-pool layout: each winner meets the other pool's runner-up
        return [(winners[0], runners[1]), (winners[1], runners[0])]

    return [(winners[i], runners[_cross_pool_index(i, num_pools)]) for i in range(num_pools)]


def build_first_round(winners: Sequence[int], runners: Sequence[Optional[int]]) -> FirstRoundPlan:
    """Build the first-round matches of the final bracket, match_order 1..n in pairing order."""
    pairs = cross_pool_pairs(winners, runners)
    qualified_count = len(winners) + sum(1 for r in runners if r is not None)
    round_type = round_label_for(qualified_count)

    matches = [
        PlannedMatch(
            round_type=round_type,
            match_order=order,
            team1_registration_id=team1,
            team2_registration_id=team2,
        )
        for order, (team1, team2) in enumerate(pairs, start=1)
    ]
    return FirstRoundPlan(
        round_type=round_type,
        qualified_count=qualified_count,
        pairs=pairs,
        matches=matches,
    )
