import uuid
from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

class Playlist(SQLModel, table=True):
    __tablename__ = "playlists"
    # 曲との関連はテーブルを持たず、Song.playlist_type == Playlist.type で導出する
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str
    type: str
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
