from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubbracket.models.registration import Registration
    from clubbracket.models.tournament import Tournament


class TournamentPool(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "pool_number", name="uq_pool_tournament_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    pool_number: int  # 1-based, display order (Pool A = 1)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="pools")
    registrations: List["Registration"] = Relationship(back_populates="pool")
