from typing import List, Optional
from sqlmodel import Session, select
from domain.models.playlist import Playlist

class PlaylistRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_all(self) -> List[Playlist]:
        return self.session.exec(select(Playlist).order_by(Playlist.created_at)).all()

    def get_by_id(self, playlist_id: str) -> Optional[Playlist]:
        return self.session.get(Playlist, playlist_id)

    def get_by_type(self, playlist_type: str) -> Optional[Playlist]:
        return self.session.exec(select(Playlist).where(Playlist.type == playlist_type)).first()

    def create(self, playlist: Playlist) -> Playlist:
        self.session.add(playlist)
        self.session.commit()
        self.session.refresh(playlist)
        return playlist
