import uuid
from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    username: str = Field(index=True, unique=True, nullable=False)
    email: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
