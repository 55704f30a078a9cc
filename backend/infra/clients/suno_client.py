import json
import http.client
import urllib.parse
import urllib.request
import urllib.error
from dataclasses import dataclass
from typing import Optional, Dict, Any
from sqlmodel import Session

from config import settings
from domain.constants import VOCAL_GENDER_CODES
from domain.exceptions import SynthesisRejectedError, SynthesisTimeoutError
from domain.services.poll_policy import PollPolicy
from infra.database.connection import get_setting_value
from utils.logger import get_logger

logger = get_logger(__name__)

# SunoAPI record-info のステータス
SUCCESS_STATUSES = {"SUCCESS", "FIRST_SUCCESS"}
FAILURE_STATUSES = {
    "CREATE_TASK_FAILED",
    "GENERATE_AUDIO_FAILED",
    "CALLBACK_EXCEPTION",
    "SENSITIVE_WORD_ERROR",
}

@dataclass
class SynthesisStatus:
    task_id: str
    status: str
    audio_url: Optional[str] = None
    duration: Optional[float] = None
    error_message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status in SUCCESS_STATUSES and bool(self.audio_url)

    @property
    def is_failure(self) -> bool:
        return self.status in FAILURE_STATUSES

@dataclass
class SynthesisResult:
    task_id: str
    audio_url: str
    duration: Optional[float] = None

def build_style(genre: str, rhythm: Optional[str] = None, vocal_style: Optional[str] = None) -> str:
    """ジャンル・リズム・ボーカルスタイルをカンマ区切りのスタイル文字列にまとめる"""
    parts = [genre]
    if rhythm:
        parts.append(rhythm)
    if vocal_style:
        parts.append(vocal_style)
    return ", ".join(parts)

def parse_status_payload(task_id: str, payload: Dict[str, Any]) -> SynthesisStatus:
    data = payload.get("data") or {}
    status = data.get("status") or "PENDING"
    response = data.get("response") or {}
    tracks = response.get("sunoData") or []

    audio_url = None
    duration = None
    for track in tracks:
        url = track.get("audioUrl") or track.get("audio_url")
        if url:
            audio_url = url
            duration = track.get("duration")
            break

    return SynthesisStatus(
        task_id=task_id,
        status=status,
        audio_url=audio_url,
        duration=duration,
        error_message=data.get("errorMessage"),
    )

class SunoClient:
    """
    SunoAPI クライアント。
    生成ジョブを開始し、record-info エンドポイントを PollPolicy に従ってポーリングする。
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.sunoapi.org/api/v1",
        model: str = "V4_5",
        callback_url: str = "",
        poll_policy: Optional[PollPolicy] = None,
        timeout: int = 60
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.callback_url = callback_url
        self.poll_policy = poll_policy or PollPolicy()
        self.timeout = timeout

    @classmethod
    def from_session(cls, session: Session) -> "SunoClient":
        return cls(
            api_key=get_setting_value(session, "suno_api_key", settings.SUNO_API_KEY),
            base_url=settings.SUNO_BASE_URL,
            model=get_setting_value(session, "suno_model", settings.SUNO_MODEL),
            callback_url=settings.SUNO_CALLBACK_URL,
            poll_policy=PollPolicy(
                max_attempts=settings.SUNO_MAX_ATTEMPTS,
                interval=settings.SUNO_POLL_INTERVAL,
            ),
            timeout=settings.SUNO_REQUEST_TIMEOUT,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _request(self, method: str, path: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        body = json.dumps(data).encode('utf-8') if data is not None else None
        req = urllib.request.Request(url, data=body, headers=headers, method=method)
        with urllib.request.urlopen(req, timeout=self.timeout) as response:
            return json.loads(response.read().decode('utf-8'))

    def start_generation(
        self,
        lyrics: str,
        style: str,
        title: str,
        vocal_gender: Optional[str] = None
    ) -> str:
        if not self.is_configured:
            raise SynthesisRejectedError("Music generation is not configured (SUNO_API_KEY is missing)")

        payload = {
            "customMode": True,
            "instrumental": False,
            "model": self.model,
            "prompt": lyrics,
            "style": style,
            "title": title or "Mantra Song",
        }
        gender_code = VOCAL_GENDER_CODES.get(vocal_gender) if vocal_gender else None
        if gender_code:
            payload["vocalGender"] = gender_code
        if self.callback_url:
            payload["callBackUrl"] = self.callback_url

        logger.info(f"Generating music with style: {style}")
        try:
            result = self._request("POST", "/generate", payload)
        except urllib.error.HTTPError as e:
            error_body = e.read().decode('utf-8')
            logger.error(f"Suno API HTTP Error: Status {e.code}\nBody: {error_body}")
            raise SynthesisRejectedError(f"Music service error: {e.code} {error_body}") from e
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            logger.error(f"Suno API Connection Error: {e}")
            raise SynthesisRejectedError(f"Could not reach the music service: {e}") from e

        task_id = (result.get("data") or {}).get("taskId")
        if result.get("code") != 200 or not task_id:
            logger.error(f"Suno API rejected generation: {json.dumps(result)}")
            raise SynthesisRejectedError(f"Music service error: {result.get('msg') or 'generation was rejected'}")

        logger.info(f"Song generation started with taskId: {task_id}")
        return task_id

    def get_status(self, task_id: str) -> SynthesisStatus:
        query = urllib.parse.urlencode({"taskId": task_id})
        payload = self._request("GET", f"/generate/record-info?{query}")
        if payload.get("code") != 200:
            # 問い合わせ自体の失敗は「処理中」とみなす
            logger.warning(f"Status check for {task_id} returned code {payload.get('code')}: {payload.get('msg')}")
            return SynthesisStatus(task_id=task_id, status="PENDING")
        return parse_status_payload(task_id, payload)

    def wait_for_completion(self, task_id: str) -> SynthesisResult:
        policy = self.poll_policy
        for attempt in range(1, policy.max_attempts + 1):
            policy.wait(attempt)
            try:
                status = self.get_status(task_id)
            except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
                logger.warning(f"Status check failed for {task_id}: {e}")
                continue

            if status.is_success:
                logger.info(f"Song generation completed: {status.audio_url}")
                return SynthesisResult(task_id=task_id, audio_url=status.audio_url, duration=status.duration)
            if status.is_failure:
                logger.error(f"Song generation failed for {task_id}: {status.status} {status.error_message or ''}")
                raise SynthesisRejectedError(
                    f"Song generation failed: {status.error_message or status.status}"
                )

            logger.info(f"Song status: {status.status}, attempt {attempt}/{policy.max_attempts}")

        logger.warning(f"Song generation timed out after {policy.max_attempts} attempts (taskId: {task_id})")
        raise SynthesisTimeoutError(
            "Song generation is taking longer than expected. It may still finish in the background, please try again later.",
            attempts=policy.max_attempts,
            task_id=task_id,
        )

    def generate(
        self,
        lyrics: str,
        genre: str,
        rhythm: Optional[str] = None,
        vocal_gender: Optional[str] = None,
        vocal_style: Optional[str] = None,
        title: Optional[str] = None
    ) -> SynthesisResult:
        """ジョブ開始から完了待ちまでを一度に行う (Song を介さない単発生成用)"""
        task_id = self.start_generation(lyrics, build_style(genre, rhythm, vocal_style), title, vocal_gender)
        return self.wait_for_completion(task_id)
