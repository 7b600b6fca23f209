from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubbracket.models.tournament import Tournament


class RoundType(str, Enum):
    pool = "pool"
    qualifications = "qualifications"
    round_of_64 = "round_of_64"
    round_of_32 = "round_of_32"
    round_of_16 = "round_of_16"
    quarters = "quarters"
    semis = "semis"
    final = "final"
    third_place = "third_place"


class MatchStatus(str, Enum):
    scheduled = "scheduled"
    ready = "ready"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    forfeit = "forfeit"


# Knockout rounds from widest to narrowest; each round feeds the next one
KNOCKOUT_ROUND_ORDER = [
    RoundType.round_of_64,
    RoundType.round_of_32,
    RoundType.round_of_16,
    RoundType.quarters,
    RoundType.semis,
    RoundType.final,
]


class TournamentMatch(SQLModel, table=True):
    """Pool matches (pool_id set) and final bracket matches (pool_id null) share this table."""

    __table_args__ = (
        SAUniqueConstraint(
            "tournament_id", "round_type", "round_number", "match_order", name="uq_match_tournament_round_order"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    pool_id: Optional[int] = Field(default=None, foreign_key="tournamentpool.id", index=True)
    round_type: str = Field(index=True)  # RoundType value
    round_number: int = Field(default=1)
    match_order: Optional[int] = Field(default=None)  # null for pool matches

    # Team slots (nullable = unresolved)
    team1_registration_id: Optional[int] = Field(default=None, foreign_key="registration.id")
    team2_registration_id: Optional[int] = Field(default=None, foreign_key="registration.id")
    winner_registration_id: Optional[int] = Field(default=None, foreign_key="registration.id")

    is_bye: bool = Field(default=False)
    status: str = Field(default=MatchStatus.scheduled.value)  # MatchStatus value
    score_json: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="matches")
