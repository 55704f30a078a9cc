from typing import List
from sqlmodel import Session
from domain.models.playlist import Playlist
from domain.models.song import Song
from infra.repositories.playlist_repository import PlaylistRepository
from infra.repositories.song_repository import SongRepository
from api.schemas.common import PlaylistCreate

class PlaylistAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = PlaylistRepository(session)
        self.song_repository = SongRepository(session)

    def get_playlists(self) -> List[Playlist]:
        return self.repository.find_all()

    def create_playlist(self, playlist: PlaylistCreate) -> Playlist:
        db_playlist = Playlist.model_validate(playlist)
        return self.repository.create(db_playlist)

    def get_playlist_songs(self, user_id: str, playlist_type: str) -> List[Song]:
        # プレイリストの曲は保存せず、playlist_type の一致で毎回導出する
        return self.song_repository.find_by_playlist_type(user_id, playlist_type)
