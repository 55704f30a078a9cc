from typing import Dict, Any
from sqlmodel import Session
from domain.models.setting import Setting
from infra.repositories.setting_repository import SettingRepository
from api.schemas.common import SettingUpdate

SECRET_SUFFIXES = ("_api_key",)

def mask_secret(key: str, value: str) -> str:
    if key.endswith(SECRET_SUFFIXES) and value:
        return f"****{value[-4:]}" if len(value) > 4 else "****"
    return value

class SettingAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = SettingRepository(session)

    def get_settings(self) -> Dict[str, Any]:
        settings = self.repository.find_all()
        return {s.key: mask_secret(s.key, s.value) for s in settings}

    def update_setting(self, setting_update: SettingUpdate) -> Dict[str, Any]:
        db_setting = self.repository.get_by_key(setting_update.key)

        # 空文字は設定の削除 (環境変数の値に戻す) として扱う
        if not setting_update.value:
            if db_setting:
                self.repository.delete(db_setting)
            return {"key": setting_update.key, "value": ""}

        if not db_setting:
            db_setting = Setting(key=setting_update.key, value=setting_update.value)
        else:
            db_setting.value = setting_update.value

        saved_setting = self.repository.save(db_setting)
        return {"key": saved_setting.key, "value": mask_secret(saved_setting.key, saved_setting.value)}

    def reset_setting(self, key: str) -> bool:
        """DB上の上書きを削除し、環境変数の値に戻す"""
        db_setting = self.repository.get_by_key(key)
        if not db_setting:
            return False
        self.repository.delete(db_setting)
        return True
