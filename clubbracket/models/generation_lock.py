from datetime import datetime

from sqlmodel import Field, SQLModel


class BracketGenerationLock(SQLModel, table=True):
    # One row per tournament while a bracket generation run is in flight
    tournament_id: int = Field(primary_key=True)
    token: str = Field(max_length=36)
    acquired_at: datetime = Field(default_factory=datetime.utcnow)
