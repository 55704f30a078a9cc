from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List

from infra.database.connection import get_session
from domain.models.user import User
from api.deps import get_current_user
from api.schemas.common import PlaylistCreate
from api.schemas.songs import SongRead, PlaylistType
from app.services.playlist_app_service import PlaylistAppService

router = APIRouter()

@router.get("/api/playlists")
def get_playlists(session: Session = Depends(get_session)):
    service = PlaylistAppService(session)
    return service.get_playlists()

@router.post("/api/playlists")
def create_playlist(playlist: PlaylistCreate, session: Session = Depends(get_session)):
    service = PlaylistAppService(session)
    return service.create_playlist(playlist)

@router.get("/api/playlists/{playlist_type}/songs", response_model=List[SongRead])
def get_playlist_songs(
    playlist_type: PlaylistType,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    service = PlaylistAppService(session)
    return service.get_playlist_songs(user.id, playlist_type)
