from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from clubbracket.models.match import TournamentMatch
    from clubbracket.models.pool import TournamentPool
    from clubbracket.models.registration import Registration


class TournamentType(str, Enum):
    official_knockout = "official_knockout"
    tmc = "tmc"
    double_elimination = "double_elimination"
    official_pools = "official_pools"  # pools + final bracket
    pools_triple_draw = "pools_triple_draw"  # pools + main/intermediate/consolation brackets
    round_robin = "round_robin"
    americano = "americano"
    mexicano = "mexicano"
    custom = "custom"


POOLS_BASED_TYPES = frozenset({TournamentType.official_pools.value, TournamentType.pools_triple_draw.value})


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    club_id: int = Field(index=True)
    name: str
    tournament_type: TournamentType = Field(sa_column=Column(String, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    pools: List["TournamentPool"] = Relationship(back_populates="tournament")
    registrations: List["Registration"] = Relationship(back_populates="tournament")
    matches: List["TournamentMatch"] = Relationship(back_populates="tournament")

    @property
    def is_pools_based(self) -> bool:
        # Column is a plain String; rows loaded from the DB carry str, not the enum
        value = getattr(self.tournament_type, "value", self.tournament_type)
        return value in POOLS_BASED_TYPES
