from fastapi import APIRouter, Body, Depends
from sqlmodel import Session
from typing import Any, Dict

from infra.database.connection import get_session
from app.services.song_generation_service import SongGenerationService
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

@router.post("/api/suno/callback")
def suno_callback(payload: Dict[str, Any] = Body(...), session: Session = Depends(get_session)):
    """
    音楽生成サービスからの完了通知。処理結果に関わらず受信確認を返す。
    """
    logger.info(f"Suno callback received: {payload.get('msg')}")
    service = SongGenerationService(session)
    song = service.reconcile_callback(payload)
    return {"received": True, "song_id": song.id if song else None}
