from typing import List, Optional, Dict, Any
from sqlmodel import Session

from config import settings
from domain.models.song import Song
from domain.services.lyric_timeline import (
    split_lyric_lines,
    compute_current_lyric_line,
    line_start_times,
    format_lrc,
    is_known_duration,
)
from infra.repositories.song_repository import SongRepository
from api.schemas.songs import SongUpdate

class SongAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = SongRepository(session)

    def get_songs(self, user_id: str) -> List[Song]:
        return self.repository.find_all(user_id)

    def get_song(self, song_id: str, user_id: str) -> Optional[Song]:
        return self.repository.get_by_id(song_id, user_id)

    def get_song_status(self, song_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        song = self.repository.get_by_id(song_id, user_id)
        if not song:
            return None
        return {
            "id": song.id,
            "status": song.status,
            "audio_url": song.audio_url,
            "error_message": song.error_message,
        }

    def update_song(self, song_id: str, user_id: str, song_update: SongUpdate) -> Optional[Song]:
        song = self.repository.get_by_id(song_id, user_id)
        if not song:
            return None

        # status / audio_url は生成フローのみが更新する
        update_data = song_update.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if key == "title" and value is not None:
                value = value.strip()
            setattr(song, key, value)

        return self.repository.update(song)

    def delete_song(self, song_id: str, user_id: str) -> bool:
        song = self.repository.get_by_id(song_id, user_id)
        if not song:
            return False
        self.repository.delete(song)
        return True

    def _resolve_duration(self, song: Song, duration: Optional[float]) -> Optional[float]:
        if is_known_duration(duration):
            return duration
        if is_known_duration(song.duration):
            return song.duration
        return None

    def get_lyric_timeline(
        self,
        song_id: str,
        user_id: str,
        current_time: Optional[float] = None,
        duration: Optional[float] = None,
        lead_time: Optional[float] = None
    ) -> Optional[Dict[str, Any]]:
        song = self.repository.get_by_id(song_id, user_id)
        if not song:
            return None

        lead = settings.LYRIC_LEAD_TIME if lead_time is None else lead_time
        lines = split_lyric_lines(song.lyrics)
        total = self._resolve_duration(song, duration)

        current_index = None
        if current_time is not None:
            current_index = compute_current_lyric_line(lines, total, current_time, lead)

        return {
            "lines": lines,
            "duration": total,
            "current_time": current_time,
            "lead_time": lead,
            "current_index": current_index,
            "line_start_times": line_start_times(lines, total, lead),
            "is_empty": not lines,
        }

    def export_as_lrc(
        self,
        song_id: str,
        user_id: str,
        duration: Optional[float] = None,
        lead_time: Optional[float] = None
    ) -> str:
        song = self.repository.get_by_id(song_id, user_id)
        if not song:
            raise LookupError("Song not found")

        total = self._resolve_duration(song, duration)
        if total is None:
            raise ValueError("Song duration is unknown; pass the track duration to export timed lyrics")

        lines = split_lyric_lines(song.lyrics)
        if not lines:
            raise ValueError("Song has no lyrics to export")

        lead = settings.LYRIC_LEAD_TIME if lead_time is None else lead_time
        return format_lrc(lines, total, lead, title=song.title)
