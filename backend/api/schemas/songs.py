from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Literal, Optional
from datetime import datetime

from domain.constants import rhythms_for
from domain.models.song import SongStatus

Genre = Literal["soul", "blues", "hip-hop", "reggae", "pop", "acoustic"]
CuratedPlaylistType = Literal["morning", "daytime", "bedtime"]
PlaylistType = Literal["morning", "daytime", "bedtime", "custom"]
VocalGender = Literal["male", "female"]
VocalStyle = Literal["warm", "powerful", "soft", "energetic", "soulful", "gritty"]

class GenerateSongRequest(BaseModel):
    text: str = Field(min_length=1)
    genre: Genre
    rhythm: Optional[str] = None
    playlist_type: Optional[CuratedPlaylistType] = None
    vocal_gender: Optional[VocalGender] = None
    vocal_style: Optional[VocalStyle] = None
    use_exact_lyrics: bool = False

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Mantra text must not be blank")
        return value.strip()

    @model_validator(mode="after")
    def rhythm_matches_genre(self):
        # リズムはジャンルごとに選択肢が決まっている
        if self.rhythm and self.rhythm not in rhythms_for(self.genre):
            raise ValueError(f"Rhythm '{self.rhythm}' is not available for genre '{self.genre}'")
        return self

class SongUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    playlist_type: Optional[CuratedPlaylistType] = None

class SongStatusRead(BaseModel):
    id: str
    status: SongStatus
    audio_url: Optional[str] = None
    error_message: Optional[str] = None

class LyricTimelineRead(BaseModel):
    lines: List[str]
    duration: Optional[float] = None
    current_time: Optional[float] = None
    lead_time: float = 0.0
    current_index: Optional[int] = None
    line_start_times: List[float] = []
    is_empty: bool

class SongRead(BaseModel):
    id: str
    mantra_id: Optional[str] = None
    title: str
    genre: str
    rhythm: Optional[str] = None
    lyrics: str
    audio_url: Optional[str] = None
    duration: Optional[float] = None
    status: SongStatus
    error_message: Optional[str] = None
    playlist_type: Optional[str] = None
    vocal_gender: Optional[str] = None
    vocal_style: Optional[str] = None
    use_exact_lyrics: bool = False
    created_at: datetime
