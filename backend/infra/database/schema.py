from sqlalchemy import text
from sqlalchemy.engine import Engine
from utils.logger import get_logger

logger = get_logger(__name__)

def get_db_schema_sql() -> str:
    """
    DuckDBの制約回避：
    DuckDBでは外部キー(FK)が設定されているテーブルの更新(UPDATE)が失敗しやすいため、
    物理的な FOREIGN KEY 句を使わず、主キー(UUID文字列)のみで構成します。
    所有者による絞り込みはリポジトリ側で user_id を条件に加えて行います。
    """
    return """
    CREATE TABLE IF NOT EXISTS users (
        id VARCHAR PRIMARY KEY,
        username VARCHAR UNIQUE NOT NULL,
        email VARCHAR,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS mantras (
        id VARCHAR PRIMARY KEY,
        user_id VARCHAR NOT NULL,
        text VARCHAR NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS songs (
        id VARCHAR PRIMARY KEY,
        user_id VARCHAR NOT NULL,
        mantra_id VARCHAR,
        title VARCHAR NOT NULL,
        genre VARCHAR NOT NULL,
        rhythm VARCHAR,
        lyrics VARCHAR NOT NULL,
        audio_url VARCHAR,
        duration DOUBLE,
        status VARCHAR NOT NULL DEFAULT 'generating',
        error_message VARCHAR,
        task_id VARCHAR,
        playlist_type VARCHAR,
        vocal_gender VARCHAR,
        vocal_style VARCHAR,
        use_exact_lyrics BOOLEAN DEFAULT FALSE,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS playlists (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        type VARCHAR NOT NULL,
        description VARCHAR,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS settings (
        key VARCHAR PRIMARY KEY,
        value VARCHAR DEFAULT ''
    );
    """

def init_raw_db(engine: Engine):
    """Raw SQL によるテーブル作成 (冪等)"""
    sql = get_db_schema_sql()
    with engine.begin() as connection:
        for statement in sql.split(";"):
            if statement.strip():
                connection.execute(text(statement))
    logger.info("Database schema initialized")
