from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class ClubAdmin(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("club_id", "user_id", name="uq_clubadmin_club_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    club_id: int = Field(index=True)
    user_id: str = Field(index=True)  # identity provider subject
    activated_at: Optional[datetime] = Field(default=None)  # null until the invitation is accepted
    created_at: datetime = Field(default_factory=datetime.utcnow)
