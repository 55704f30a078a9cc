from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, Response
from sqlmodel import Session
from typing import List, Optional
import re
import urllib.parse

from infra.database.connection import get_session
from infra.clients.lyrics_client import LyricsClient
from infra.clients.suno_client import SunoClient
from domain.exceptions import LyricsGenerationError, SynthesisError
from domain.models.user import User
from api.deps import get_current_user, get_lyrics_client, get_music_client
from api.schemas.songs import GenerateSongRequest, SongUpdate, SongRead, SongStatusRead, LyricTimelineRead
from app.services.song_app_service import SongAppService
from app.services.song_generation_service import SongGenerationService, run_background_synthesis

router = APIRouter()

def _generation_error_response(error: SynthesisError, song_id: str) -> JSONResponse:
    # タイムアウトは「まだ生成中かもしれない」旨をUIが表示できるよう区別する
    status_code = 504 if error.timed_out else 502
    return JSONResponse(
        status_code=status_code,
        content={"error": error.message, "song_id": song_id, "timed_out": error.timed_out},
    )

@router.get("/api/songs", response_model=List[SongRead])
def get_songs(user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    service = SongAppService(session)
    return service.get_songs(user.id)

@router.post("/api/songs/generate", response_model=SongRead)
def generate_song(
    request: GenerateSongRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    lyrics_client: LyricsClient = Depends(get_lyrics_client),
    music_client: SunoClient = Depends(get_music_client)
):
    """
    マントラから楽曲を生成する。音楽生成の完了(または失敗/タイムアウト)までレスポンスは返らない (数分かかる)。
    """
    service = SongGenerationService(session, lyrics_client, music_client)
    try:
        song = service.prepare_song(user.id, request)
    except LyricsGenerationError as e:
        return JSONResponse(status_code=502, content={"error": e.message, "song_id": None, "timed_out": False})

    try:
        return service.synthesize_song(song)
    except SynthesisError as e:
        return _generation_error_response(e, song.id)

@router.post("/api/songs/generate/background", response_model=SongRead, status_code=202)
def generate_song_background(
    request: GenerateSongRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    lyrics_client: LyricsClient = Depends(get_lyrics_client),
    music_client: SunoClient = Depends(get_music_client)
):
    """
    歌詞生成までを同期で行い、generating 状態の Song を即座に返す。
    音楽生成はバックグラウンドで実行され、結果は /api/songs/{id}/status で確認する。
    """
    service = SongGenerationService(session, lyrics_client, music_client)
    try:
        song = service.prepare_song(user.id, request)
    except LyricsGenerationError as e:
        return JSONResponse(status_code=502, content={"error": e.message, "song_id": None, "timed_out": False})

    background_tasks.add_task(run_background_synthesis, song.id, user.id, music_client)
    return song

@router.get("/api/songs/{song_id}", response_model=SongRead)
def get_song(song_id: str, user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    service = SongAppService(session)
    song = service.get_song(song_id, user.id)
    if not song:
        raise HTTPException(status_code=404, detail="Song not found")
    return song

@router.get("/api/songs/{song_id}/status", response_model=SongStatusRead)
def get_song_status(song_id: str, user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    service = SongAppService(session)
    status = service.get_song_status(song_id, user.id)
    if not status:
        raise HTTPException(status_code=404, detail="Song not found")
    return status

@router.patch("/api/songs/{song_id}", response_model=SongRead)
def update_song(
    song_id: str,
    song_update: SongUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    service = SongAppService(session)
    song = service.update_song(song_id, user.id, song_update)
    if not song:
        raise HTTPException(status_code=404, detail="Song not found")
    return song

@router.delete("/api/songs/{song_id}")
def delete_song(song_id: str, user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    service = SongAppService(session)
    success = service.delete_song(song_id, user.id)
    if not success:
        raise HTTPException(status_code=404, detail="Song not found")
    return {"ok": True}

@router.get("/api/songs/{song_id}/lyrics/timeline", response_model=LyricTimelineRead)
def get_lyric_timeline(
    song_id: str,
    current_time: Optional[float] = Query(None),
    duration: Optional[float] = Query(None),
    lead_time: Optional[float] = Query(None),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """
    歌詞の行リストと、再生位置に対応する現在行を返す。
    duration が不明 (0/未指定) の場合、current_index は null になる。
    """
    service = SongAppService(session)
    timeline = service.get_lyric_timeline(song_id, user.id, current_time, duration, lead_time)
    if timeline is None:
        raise HTTPException(status_code=404, detail="Song not found")
    return timeline

@router.get("/api/songs/{song_id}/export/lrc")
def export_song_lrc(
    song_id: str,
    duration: Optional[float] = Query(None),
    lead_time: Optional[float] = Query(None),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """
    カラオケ/動画書き出し用の LRC ファイルをダウンロードする
    """
    service = SongAppService(session)
    try:
        content = service.export_as_lrc(song_id, user.id, duration, lead_time)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    song = service.get_song(song_id, user.id)
    filename = f"{song.title}.lrc"
    # ファイル名に使えない文字を置換
    filename = re.sub(r'[\\/*?:"<>|]', "", filename)

    return Response(
        content=content,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{urllib.parse.quote(filename)}"}
    )
