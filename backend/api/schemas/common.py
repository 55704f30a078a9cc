from pydantic import BaseModel, Field
from typing import Optional

from api.schemas.songs import PlaylistType

class SettingUpdate(BaseModel):
    key: str
    value: str

class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    email: Optional[str] = None

class MantraCreate(BaseModel):
    text: str = Field(min_length=1)

class PlaylistCreate(BaseModel):
    name: str = Field(min_length=1)
    type: PlaylistType
    description: Optional[str] = None
