from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from infra.database.connection import get_session
from api.schemas.common import SettingUpdate
from app.services.setting_app_service import SettingAppService

router = APIRouter()

@router.get("/api/settings")
def get_settings(session: Session = Depends(get_session)):
    """DBに保存された設定の一覧 (APIキーはマスク済み)"""
    service = SettingAppService(session)
    return service.get_settings()

@router.post("/api/settings")
def update_setting(setting: SettingUpdate, session: Session = Depends(get_session)):
    service = SettingAppService(session)
    return service.update_setting(setting)

@router.delete("/api/settings/{key}")
def reset_setting(key: str, session: Session = Depends(get_session)):
    service = SettingAppService(session)
    if not service.reset_setting(key):
        raise HTTPException(status_code=404, detail="Setting not found")
    return {"ok": True}
