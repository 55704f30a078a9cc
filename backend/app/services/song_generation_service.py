from typing import Any, Dict, Optional
from sqlmodel import Session

from api.schemas.songs import GenerateSongRequest
from domain.exceptions import SynthesisError, SynthesisRejectedError
from domain.models.mantra import Mantra
from domain.models.song import Song, SongStatus
from infra.clients.lyrics_client import LyricsClient
from infra.clients.suno_client import SunoClient, build_style
from infra.database import connection as db_connection
from infra.repositories.mantra_repository import MantraRepository
from infra.repositories.song_repository import SongRepository
from utils.logger import get_logger

logger = get_logger(__name__)

class SongGenerationService:
    """
    マントラから楽曲を生成するワークフロー。

    1. Mantra を保存
    2. タイトル生成 (失敗時はフォールバック)
    3. 歌詞生成 (AI変換 or 原文のまま)
    4. Song を generating で作成
    5. 音楽生成ジョブを開始し、完了までポーリング
    6/7. completed もしくは error に更新

    ポーリングは呼び出し元をブロックする。バックグラウンド実行は run_background_synthesis を使う。
    """

    def __init__(
        self,
        session: Session,
        lyrics_client: Optional[LyricsClient] = None,
        music_client: Optional[SunoClient] = None
    ):
        self.session = session
        self.lyrics_client = lyrics_client
        self.music_client = music_client
        self.mantra_repository = MantraRepository(session)
        self.song_repository = SongRepository(session)

    def generate_song(self, user_id: str, request: GenerateSongRequest) -> Song:
        song = self.prepare_song(user_id, request)
        return self.synthesize_song(song)

    def prepare_song(self, user_id: str, request: GenerateSongRequest) -> Song:
        mantra = self.mantra_repository.create(Mantra(user_id=user_id, text=request.text))
        logger.info(f"Mantra {mantra.id} created for user {user_id}")

        title = self.lyrics_client.generate_title(request.text)
        # 歌詞生成の失敗 (LyricsGenerationError) はそのまま呼び出し元へ
        lyrics = self.lyrics_client.generate_lyrics(request.text, request.genre, request.use_exact_lyrics)

        song = Song(
            user_id=user_id,
            mantra_id=mantra.id,
            title=title,
            genre=request.genre,
            rhythm=request.rhythm,
            lyrics=lyrics,
            status=SongStatus.GENERATING,
            playlist_type=request.playlist_type,
            vocal_gender=request.vocal_gender,
            vocal_style=request.vocal_style,
            use_exact_lyrics=request.use_exact_lyrics,
        )
        song = self.song_repository.create(song)
        logger.info(f"Song {song.id} created with status {SongStatus.GENERATING.value}")
        return song

    def synthesize_song(self, song: Song) -> Song:
        try:
            task_id = self.music_client.start_generation(
                song.lyrics,
                build_style(song.genre, song.rhythm, song.vocal_style),
                song.title,
                song.vocal_gender,
            )
            song.task_id = task_id
            song = self.song_repository.update(song)

            result = self.music_client.wait_for_completion(task_id)
        except SynthesisError as e:
            # ポーリング失敗より先にコールバックで完了していれば、その曲を返す
            if self._mark_error(song, e.message) == SongStatus.COMPLETED:
                return song
            raise
        except Exception as e:
            logger.exception(f"Unexpected error generating music for song {song.id}")
            if self._mark_error(song, "Music generation failed. Please try again.") == SongStatus.COMPLETED:
                return song
            raise SynthesisRejectedError("Music generation failed. Please try again.") from e

        # ポーリング中にコールバックで完了/失敗が確定している可能性がある
        self._reload(song)
        if song.status == SongStatus.COMPLETED:
            logger.info(f"Song {song.id} already completed via callback")
            return song
        if song.status == SongStatus.ERROR:
            logger.error(f"Song {song.id} already failed via callback: {song.error_message}")
            raise SynthesisRejectedError(song.error_message or "Song generation failed")

        song.mark_completed(result.audio_url, result.duration)
        song = self.song_repository.update(song)
        logger.info(f"Song {song.id} completed: {song.audio_url}")
        return song

    def _reload(self, song: Song):
        # 別セッション (コールバック) の更新を読むため、現在のトランザクションを閉じてから再取得する
        self.session.commit()
        self.session.refresh(song)

    def _mark_error(self, song: Song, message: str) -> SongStatus:
        """error に更新し、最終的な status を返す (既に終端状態なら何もしない)"""
        self._reload(song)
        if song.is_terminal:
            return SongStatus(song.status)
        song.mark_error(message)
        self.song_repository.update(song)
        logger.error(f"Song {song.id} marked as error: {message}")
        return SongStatus.ERROR

    def reconcile_callback(self, payload: Dict[str, Any]) -> Optional[Song]:
        """
        音楽生成サービスからのコールバックを反映する。
        generating の曲のみ更新対象とし、error になった曲を復活させることはしない。
        """
        data = payload.get("data") or {}
        task_id = data.get("task_id") or data.get("taskId")
        if not task_id:
            logger.warning("Callback received without task id")
            return None

        song = self.song_repository.get_by_task_id(task_id)
        if not song:
            logger.warning(f"Callback for unknown task {task_id}")
            return None

        if song.is_terminal:
            logger.info(f"Ignoring callback for song {song.id} in status {song.status}")
            return song

        if payload.get("code") != 200:
            song.mark_error(f"Song generation failed: {payload.get('msg') or 'unknown error'}")
            return self.song_repository.update(song)

        if data.get("callbackType") != "complete":
            return song

        for track in data.get("data") or []:
            audio_url = track.get("audio_url") or track.get("audioUrl")
            if audio_url:
                song.mark_completed(audio_url, track.get("duration"))
                logger.info(f"Song {song.id} completed via callback")
                return self.song_repository.update(song)
        return song

def run_background_synthesis(song_id: str, user_id: str, music_client: SunoClient):
    """
    リクエストとは別のセッションで音楽生成を実行する。
    結果は Song.status にのみ反映され、クライアントは status エンドポイントで確認する。
    """
    with Session(db_connection.get_engine()) as session:
        service = SongGenerationService(session, music_client=music_client)
        song = service.song_repository.get_by_id(song_id, user_id)
        if not song:
            logger.warning(f"Background synthesis skipped: song {song_id} not found")
            return
        try:
            service.synthesize_song(song)
        except SynthesisError as e:
            logger.error(f"Background synthesis failed for song {song_id}: {e.message}")
