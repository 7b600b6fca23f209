from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubbracket.models.pool import TournamentPool
    from clubbracket.models.tournament import Tournament


class Registration(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    team_name: Optional[str] = Field(default=None)

    # Set by pool generation; null until the pair is drawn into a pool
    pool_id: Optional[int] = Field(default=None, foreign_key="tournamentpool.id", index=True)

    # Sum of both partners' individual ranks (lower = stronger pair); ranking tie-break
    pair_total_rank: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="registrations")
    pool: Optional["TournamentPool"] = Relationship(back_populates="registrations")
