from typing import Optional
from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from infra.database.connection import get_session
from infra.clients.lyrics_client import LyricsClient
from infra.clients.suno_client import SunoClient
from domain.models.user import User
from infra.repositories.user_repository import UserRepository

def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    session: Session = Depends(get_session)
) -> User:
    """X-User-Id ヘッダーから呼び出し元ユーザーを解決する (認証自体は上流の責務)"""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    user = UserRepository(session).get_by_id(x_user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user

# テストではこれらを dependency_overrides で差し替える
def get_lyrics_client(session: Session = Depends(get_session)) -> LyricsClient:
    return LyricsClient.from_session(session)

def get_music_client(session: Session = Depends(get_session)) -> SunoClient:
    return SunoClient.from_session(session)
