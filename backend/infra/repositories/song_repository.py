from typing import List, Optional
from sqlmodel import Session, select
from datetime import datetime

from domain.models.song import Song

class SongRepository:
    """
    Song の永続化。取得・更新・削除は必ず (song id, user id) で絞り込む。
    """
    def __init__(self, session: Session):
        self.session = session

    def find_all(self, user_id: str) -> List[Song]:
        statement = select(Song).where(Song.user_id == user_id).order_by(Song.created_at)
        return self.session.exec(statement).all()

    def find_by_playlist_type(self, user_id: str, playlist_type: str) -> List[Song]:
        statement = (
            select(Song)
            .where(Song.user_id == user_id)
            .where(Song.playlist_type == playlist_type)
            .order_by(Song.created_at)
        )
        return self.session.exec(statement).all()

    def get_by_id(self, song_id: str, user_id: str) -> Optional[Song]:
        statement = select(Song).where(Song.id == song_id).where(Song.user_id == user_id)
        return self.session.exec(statement).first()

    def get_by_task_id(self, task_id: str) -> Optional[Song]:
        return self.session.exec(select(Song).where(Song.task_id == task_id)).first()

    def create(self, song: Song) -> Song:
        self.session.add(song)
        self.session.commit()
        self.session.refresh(song)
        return song

    def update(self, song: Song) -> Song:
        song.updated_at = datetime.now()
        self.session.add(song)
        self.session.commit()
        self.session.refresh(song)
        return song

    def delete(self, song: Song):
        self.session.delete(song)
        self.session.commit()
