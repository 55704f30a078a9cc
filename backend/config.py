import os
from pydantic_settings import BaseSettings
from pydantic import Field
import platformdirs

APP_NAME = "Mantra"
APP_AUTHOR = "MantraDev"

class Settings(BaseSettings):
    # App Info
    APP_NAME: str = APP_NAME
    APP_AUTHOR: str = APP_AUTHOR
    ENV: str = "prod"

    # Paths
    # デフォルトは platformdirs を使用するが、環境変数 DB_PATH があればそれを優先する
    USER_DATA_DIR: str = Field(default_factory=lambda: platformdirs.user_data_dir(APP_NAME, APP_AUTHOR))
    DB_PATH: str | None = None

    # Network
    MANTRA_PORT: int = 8001
    FRONTEND_PORT: int = 5173

    # Lyrics / title generation (LLM)
    LLM_PROVIDER: str = "openai"
    LLM_MODEL: str = ""
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    ANTHROPIC_API_KEY: str = ""
    GOOGLE_API_KEY: str = ""
    OLLAMA_HOST: str = "http://localhost:11434"

    # Music synthesis (SunoAPI)
    SUNO_API_KEY: str = ""
    SUNO_BASE_URL: str = "https://api.sunoapi.org/api/v1"
    SUNO_MODEL: str = "V4_5"
    SUNO_CALLBACK_URL: str = ""
    SUNO_POLL_INTERVAL: float = 3.0
    SUNO_MAX_ATTEMPTS: int = 120
    SUNO_REQUEST_TIMEOUT: int = 60

    # Playback
    LYRIC_LEAD_TIME: float = 2.0

    # Logging
    MANTRA_LOG_DIR: str | None = None

    class Config:
        env_file = ".env"
        extra = "ignore"

    def model_post_init(self, __context):
        # DB_PATHが未設定ならデフォルト値を設定
        if not self.DB_PATH:
            self.DB_PATH = os.path.join(self.USER_DATA_DIR, "mantra.duckdb")

        # ログディレクトリ
        if not self.MANTRA_LOG_DIR:
            self.MANTRA_LOG_DIR = os.path.join(self.USER_DATA_DIR, "logs")

    def setup_environment(self):
        """ロガーが参照する環境変数を設定する"""
        if self.MANTRA_LOG_DIR:
            os.environ["MANTRA_LOG_DIR"] = self.MANTRA_LOG_DIR

settings = Settings()
