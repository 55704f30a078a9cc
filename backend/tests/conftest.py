import os
import pytest
import sys
import tempfile
import uuid
import json
from typing import Generator, List, Dict, Any, Optional
from sqlmodel import Session, create_engine

# 1. パス解決: backendディレクトリをsys.pathに追加
CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.dirname(CURRENT_DIR)
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

# モジュール読み込み時にユーザーディレクトリへDBを作らないようにする
os.environ.setdefault("DB_PATH", os.path.join(tempfile.gettempdir(), "mantra_test_bootstrap.duckdb"))

import infra.database.connection as db_connection
from infra.database.schema import init_raw_db
from utils.seeding import seed_initial_data
from domain.models.user import User
from domain.services.poll_policy import PollPolicy
from infra.clients.lyrics_client import LyricsClient
from infra.clients.suno_client import SunoClient

@pytest.fixture(name="session", scope="function")
def session_fixture(mocker) -> Generator[Session, None, None]:
    """
    テストごとに完全に独立したDB環境（物理ファイル）を構築する。
    """

    # ユニークなDBファイルパスを生成
    unique_id = str(uuid.uuid4())
    test_db_path = os.path.join(tempfile.gettempdir(), f"mantra_test_{unique_id}.duckdb")

    # テスト用エンジンの作成 (設定を固定)
    connect_args = {'config': {'worker_threads': 4, 'access_mode': 'READ_WRITE'}}
    engine = create_engine(
        f"duckdb:///{test_db_path}",
        connect_args=connect_args
    )

    # アプリケーション全体で使用されるエンジングローバル変数をテスト用に差し替え
    db_connection.engine = engine
    db_connection.DB_PATH = test_db_path
    db_connection.DATABASE_URL = f"duckdb:///{test_db_path}"

    # 1. Raw SQLでテーブルを直接作成
    init_raw_db(engine)

    # 2. 初期データの投入 (キュレーション済みプレイリスト)
    with Session(engine) as s:
        seed_initial_data(s)

    # テスト実行用のセッションを提供
    with Session(engine) as session:
        yield session

    # テスト終了後のクリーンアップ
    engine.dispose()
    if os.path.exists(test_db_path):
        try:
            os.remove(test_db_path)
        except OSError:
            pass

@pytest.fixture(name="client")
def client_fixture(session: Session, mocker) -> Generator:
    """FastAPIのTestClientを提供し、DBセッションをDIで差し替える"""
    from fastapi.testclient import TestClient
    from main import app
    from infra.database.connection import get_session

    # アプリ起動時の init_db / close_db がテスト用DBに触れないようモック化
    mocker.patch("main.init_db")
    mocker.patch("main.close_db")

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()

@pytest.fixture(name="user")
def user_fixture(session: Session) -> User:
    user = User(username=f"user_{uuid.uuid4().hex[:8]}", email="user@example.com")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user

@pytest.fixture(name="other_user")
def other_user_fixture(session: Session) -> User:
    user = User(username=f"other_{uuid.uuid4().hex[:8]}")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user

@pytest.fixture(name="auth_headers")
def auth_headers_fixture(user: User) -> Dict[str, str]:
    return {"X-User-Id": user.id}

def make_http_response(mocker, payload: Dict[str, Any]):
    response = mocker.MagicMock()
    response.read.return_value = json.dumps(payload).encode("utf-8")
    response.__enter__.return_value = response
    return response

@pytest.fixture(autouse=True)
def mock_urlopen(mocker):
    """
    外部APIへのHTTP呼び出しをグローバルにモック化する。
    デフォルトでは OpenAI 形式のレスポンスを返す。
    """
    mock_response = make_http_response(mocker, {
        "choices": [{"message": {"content": "Rise Into The Light"}}],
        "content": [{"text": "Rise Into The Light"}],
        "candidates": [{"content": {"parts": [{"text": "Rise Into The Light"}]}}]
    })
    return mocker.patch("urllib.request.urlopen", return_value=mock_response)

@pytest.fixture(name="suno_responses")
def suno_responses_fixture(mocker, mock_urlopen):
    """
    urlopen が返すレスポンスを順番に設定するヘルパー。
    suno_responses([payload1, payload2, ...]) の形で使う。
    """
    def configure(payloads: List[Any]):
        side_effects = []
        for payload in payloads:
            if isinstance(payload, Exception):
                side_effects.append(payload)
            else:
                side_effects.append(make_http_response(mocker, payload))
        mock_urlopen.side_effect = side_effects
        return mock_urlopen
    return configure

@pytest.fixture(name="sleeps")
def sleeps_fixture() -> List[float]:
    return []

@pytest.fixture(name="music_client")
def music_client_fixture(sleeps: List[float]) -> SunoClient:
    # 仮想時間: sleep は記録のみ
    policy = PollPolicy(max_attempts=5, interval=3.0, sleep=sleeps.append)
    return SunoClient(api_key="test-key", base_url="https://suno.test/api/v1", poll_policy=policy)

@pytest.fixture(name="lyrics_client")
def lyrics_client_fixture() -> LyricsClient:
    def generator(prompt: str, system_prompt: Optional[str], max_tokens: int) -> str:
        if max_tokens <= 50:
            return '"Strength Within"'
        return "[Verse]\nI am capable\nI rise each day\n\n[Chorus]\nCapable, capable"
    return LyricsClient(generator)

def suno_task_started(task_id: str = "task-123") -> Dict[str, Any]:
    return {"code": 200, "msg": "success", "data": {"taskId": task_id}}

def suno_record(status: str, audio_url: Optional[str] = None, duration: float = 180.0, error: Optional[str] = None) -> Dict[str, Any]:
    suno_data = []
    if audio_url:
        suno_data.append({"id": "clip-1", "audioUrl": audio_url, "duration": duration})
    return {
        "code": 200,
        "msg": "success",
        "data": {
            "taskId": "task-123",
            "status": status,
            "response": {"sunoData": suno_data},
            "errorMessage": error,
        },
    }
