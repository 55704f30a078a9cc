import uuid
from enum import Enum
from typing import Optional, Dict, FrozenSet
from datetime import datetime
from sqlmodel import Field, SQLModel
from sqlalchemy import Column, Enum as SAEnum

from domain.exceptions import InvalidStatusTransition

class SongStatus(str, Enum):
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"

# completed / error は終端状態。error からの再開は行わず、新しい Song を作る
ALLOWED_TRANSITIONS: Dict[SongStatus, FrozenSet[SongStatus]] = {
    SongStatus.GENERATING: frozenset({SongStatus.COMPLETED, SongStatus.ERROR}),
    SongStatus.COMPLETED: frozenset(),
    SongStatus.ERROR: frozenset(),
}

class Song(SQLModel, table=True):
    """
    1回の生成試行とその結果(歌詞・音源)を表すレコード。
    status がクライアントから見た唯一の進捗情報となる。
    """
    __tablename__ = "songs"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    mantra_id: Optional[str] = Field(default=None, index=True)

    title: str
    genre: str
    rhythm: Optional[str] = None
    lyrics: str
    audio_url: Optional[str] = None
    duration: Optional[float] = None

    status: SongStatus = Field(
        default=SongStatus.GENERATING,
        sa_column=Column(
            SAEnum(SongStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
            nullable=False,
        ),
    )
    error_message: Optional[str] = None
    task_id: Optional[str] = Field(default=None, index=True)

    playlist_type: Optional[str] = None
    vocal_gender: Optional[str] = None
    vocal_style: Optional[str] = None
    use_exact_lyrics: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def transition_to(self, target: SongStatus):
        current = SongStatus(self.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStatusTransition(current.value, target.value)
        self.status = target
        self.updated_at = datetime.now()

    def mark_completed(self, audio_url: str, duration: Optional[float] = None):
        if not audio_url:
            raise ValueError("A completed song requires an audio URL")
        self.transition_to(SongStatus.COMPLETED)
        self.audio_url = audio_url
        self.duration = duration
        self.error_message = None

    def mark_error(self, message: str):
        self.transition_to(SongStatus.ERROR)
        self.audio_url = None
        self.error_message = message

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[SongStatus(self.status)]
