from sqlmodel import create_engine, Session
import os
import threading
from config import settings
from infra.database.schema import init_raw_db

# DBパス設定
DB_PATH = settings.DB_PATH
os.makedirs(os.path.dirname(DB_PATH), exist_ok=True)

DATABASE_URL = f"duckdb:///{DB_PATH}"

# エンジン初期化 (設定を固定)
connect_args = {'config': {'worker_threads': 4, 'access_mode': 'READ_WRITE'}}
engine = create_engine(
    DATABASE_URL,
    pool_size=5,
    max_overflow=10,
    connect_args=connect_args
)

db_lock = threading.RLock()

def init_db():
    """
    アプリケーション起動時のDB初期化フロー。
    テーブル作成 → 初期データ(キュレーション済みプレイリスト)投入。
    """
    from utils.seeding import seed_initial_data

    with db_lock:
        init_raw_db(engine)
        with Session(engine) as session:
            seed_initial_data(session)

def close_db():
    """
    データベース接続を終了する。
    main.py の lifespan イベントから呼び出されます。
    """
    engine.dispose()

def get_engine():
    # テストでは engine が差し替えられるため、参照は常に呼び出し時に解決する
    return engine

def get_session():
    with Session(engine) as session:
        yield session

def get_setting_value(session: Session, key: str, default: str = "") -> str:
    from domain.models.setting import Setting
    setting = session.get(Setting, key)
    if setting and setting.value:
        return setting.value
    return default

def set_setting_value(session: Session, key: str, value: str):
    from domain.models.setting import Setting
    setting = session.get(Setting, key)
    if not setting:
        setting = Setting(key=key, value=value)
    else:
        setting.value = value
    session.add(setting)
    session.commit()
    session.refresh(setting)
    return setting
