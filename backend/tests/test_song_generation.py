import json
import pytest
from sqlmodel import Session, select

from api.schemas.songs import GenerateSongRequest
from app.services.song_generation_service import SongGenerationService, run_background_synthesis
from domain.exceptions import (
    InvalidStatusTransition,
    LLMError,
    LyricsGenerationError,
    SynthesisRejectedError,
    SynthesisTimeoutError,
)
from domain.models.mantra import Mantra
from domain.models.song import Song, SongStatus
from infra.clients.lyrics_client import LyricsClient
from conftest import suno_task_started, suno_record

AUDIO_URL = "https://cdn.test/mantra.mp3"

def _request(**kwargs) -> GenerateSongRequest:
    data = {
        "text": "I am capable of amazing things.",
        "genre": "soul",
        "rhythm": "motown",
        "playlist_type": "morning",
        "vocal_gender": "female",
        "vocal_style": "warm",
    }
    data.update(kwargs)
    return GenerateSongRequest(**data)

def test_generate_song_success(session: Session, user, lyrics_client, music_client, suno_responses):
    mock_urlopen = suno_responses([
        suno_task_started("task-123"),
        suno_record("PENDING"),
        suno_record("SUCCESS", audio_url=AUDIO_URL, duration=181.2),
    ])
    service = SongGenerationService(session, lyrics_client, music_client)
    song = service.generate_song(user.id, _request())

    assert song.status == SongStatus.COMPLETED
    assert song.audio_url == AUDIO_URL
    assert song.duration == 181.2
    assert song.title == "Strength Within"
    assert song.task_id == "task-123"
    assert song.error_message is None
    assert song.playlist_type == "morning"
    assert song.user_id == user.id

    # スタイルはジャンル・リズム・ボーカルの順で結合される
    body = json.loads(mock_urlopen.call_args_list[0][0][0].data.decode("utf-8"))
    assert body["style"] == "soul, motown, warm"
    assert body["vocalGender"] == "f"
    assert body["prompt"] == song.lyrics

    mantra = session.get(Mantra, song.mantra_id)
    assert mantra.text == "I am capable of amazing things."
    assert mantra.user_id == user.id

def test_generate_song_with_exact_lyrics(session: Session, user, music_client, suno_responses):
    suno_responses([suno_task_started(), suno_record("SUCCESS", audio_url=AUDIO_URL)])

    def generator(prompt, system_prompt, max_tokens):
        if max_tokens > 50:
            raise AssertionError("lyrics should not be generated")
        return "Grow"

    service = SongGenerationService(session, LyricsClient(generator), music_client)
    song = service.generate_song(user.id, _request(text="I am strong. I will grow.", use_exact_lyrics=True))

    assert song.use_exact_lyrics is True
    assert song.lyrics.startswith("[Verse]\nI am strong\nI will grow\n\n[Chorus]")

def test_generate_song_explicit_failure(session: Session, user, lyrics_client, music_client, suno_responses):
    suno_responses([
        suno_task_started(),
        suno_record("PENDING"),
        suno_record("GENERATE_AUDIO_FAILED", error="audio failed"),
    ])
    service = SongGenerationService(session, lyrics_client, music_client)

    with pytest.raises(SynthesisRejectedError) as exc:
        service.generate_song(user.id, _request())
    assert exc.value.timed_out is False

    song = session.exec(select(Song).where(Song.user_id == user.id)).one()
    assert song.status == SongStatus.ERROR
    assert song.audio_url is None
    assert "audio failed" in song.error_message

def test_generate_song_timeout(session: Session, user, lyrics_client, music_client, suno_responses, sleeps):
    suno_responses([suno_task_started()] + [suno_record("PENDING")] * 5)
    service = SongGenerationService(session, lyrics_client, music_client)

    with pytest.raises(SynthesisTimeoutError) as exc:
        service.generate_song(user.id, _request())

    assert exc.value.timed_out is True
    assert exc.value.attempts == music_client.poll_policy.max_attempts
    assert len(sleeps) == music_client.poll_policy.max_attempts

    song = session.exec(select(Song).where(Song.user_id == user.id)).one()
    assert song.status == SongStatus.ERROR
    assert song.audio_url is None
    assert song.task_id == "task-123"

def test_generate_song_rejected_on_start(session: Session, user, lyrics_client, music_client, suno_responses):
    suno_responses([{"code": 400, "msg": "bad request", "data": None}])
    service = SongGenerationService(session, lyrics_client, music_client)

    with pytest.raises(SynthesisRejectedError):
        service.generate_song(user.id, _request())

    song = session.exec(select(Song).where(Song.user_id == user.id)).one()
    assert song.status == SongStatus.ERROR
    assert song.task_id is None

def test_lyrics_failure_creates_no_song(session: Session, user, music_client, mock_urlopen):
    def generator(prompt, system_prompt, max_tokens):
        if max_tokens > 50:
            raise LLMError("API_ERROR: 503")
        return "Title"

    service = SongGenerationService(session, LyricsClient(generator), music_client)
    with pytest.raises(LyricsGenerationError):
        service.generate_song(user.id, _request())

    assert session.exec(select(Song)).all() == []
    mock_urlopen.assert_not_called()

def test_title_failure_does_not_block_generation(session: Session, user, music_client, suno_responses):
    suno_responses([suno_task_started(), suno_record("SUCCESS", audio_url=AUDIO_URL)])

    def generator(prompt, system_prompt, max_tokens):
        if max_tokens <= 50:
            raise LLMError("title service down")
        return "[Verse]\nAmazing things"

    service = SongGenerationService(session, LyricsClient(generator), music_client)
    song = service.generate_song(user.id, _request())
    assert song.title == "I am capable of"
    assert song.status == SongStatus.COMPLETED

def test_unexpected_error_marks_song_as_error(session: Session, user, lyrics_client, music_client, mocker):
    mocker.patch.object(music_client, "start_generation", side_effect=KeyError("data"))
    service = SongGenerationService(session, lyrics_client, music_client)

    with pytest.raises(SynthesisRejectedError):
        service.generate_song(user.id, _request())

    song = session.exec(select(Song).where(Song.user_id == user.id)).one()
    assert song.status == SongStatus.ERROR

def test_status_transitions():
    song = Song(user_id="u", title="t", genre="pop", lyrics="l")
    assert song.status == SongStatus.GENERATING
    assert not song.is_terminal

    with pytest.raises(ValueError):
        song.mark_completed("")

    song.mark_completed(AUDIO_URL, 120.0)
    assert song.is_terminal

    with pytest.raises(InvalidStatusTransition):
        song.mark_error("too late")
    with pytest.raises(InvalidStatusTransition):
        song.transition_to(SongStatus.GENERATING)

def test_error_is_terminal():
    song = Song(user_id="u", title="t", genre="pop", lyrics="l")
    song.mark_error("failed")
    assert song.audio_url is None
    with pytest.raises(InvalidStatusTransition):
        song.mark_completed(AUDIO_URL)

def _generating_song(session: Session, user, task_id="task-123") -> Song:
    song = Song(user_id=user.id, title="t", genre="pop", lyrics="l", task_id=task_id)
    session.add(song)
    session.commit()
    session.refresh(song)
    return song

def _complete_callback(task_id="task-123", audio_url=AUDIO_URL):
    return {
        "code": 200,
        "msg": "All generated successfully.",
        "data": {
            "callbackType": "complete",
            "task_id": task_id,
            "data": [{"id": "clip-1", "audio_url": audio_url, "duration": 98.4}],
        },
    }

def test_callback_completes_generating_song(session: Session, user):
    song = _generating_song(session, user)
    service = SongGenerationService(session)

    result = service.reconcile_callback(_complete_callback())
    assert result.id == song.id
    assert result.status == SongStatus.COMPLETED
    assert result.audio_url == AUDIO_URL
    assert result.duration == 98.4

def test_callback_failure_marks_error(session: Session, user):
    _generating_song(session, user)
    service = SongGenerationService(session)

    result = service.reconcile_callback({"code": 501, "msg": "Audio generation failed", "data": {"task_id": "task-123"}})
    assert result.status == SongStatus.ERROR
    assert "Audio generation failed" in result.error_message

def test_callback_does_not_resurrect_error_song(session: Session, user):
    song = _generating_song(session, user)
    song.mark_error("timed out")
    session.add(song)
    session.commit()

    result = SongGenerationService(session).reconcile_callback(_complete_callback())
    assert result.status == SongStatus.ERROR
    assert result.audio_url is None

def test_callback_intermediate_stage_is_ignored(session: Session, user):
    _generating_song(session, user)
    payload = _complete_callback()
    payload["data"]["callbackType"] = "text"

    result = SongGenerationService(session).reconcile_callback(payload)
    assert result.status == SongStatus.GENERATING

def test_callback_unknown_task(session: Session):
    assert SongGenerationService(session).reconcile_callback(_complete_callback("nope")) is None
    assert SongGenerationService(session).reconcile_callback({"code": 200, "data": {}}) is None

def test_synthesis_keeps_callback_result(session: Session, user, music_client, mocker):
    """ポーリング中にコールバックで完了した場合、その結果を上書きしない"""
    song = _generating_song(session, user, task_id=None)
    service = SongGenerationService(session, music_client=music_client)
    mocker.patch.object(music_client, "start_generation", return_value="task-123")

    def complete_via_callback(task_id):
        with Session(session.get_bind()) as other:
            SongGenerationService(other).reconcile_callback(_complete_callback(audio_url="https://cdn.test/callback.mp3"))
        from infra.clients.suno_client import SynthesisResult
        return SynthesisResult(task_id=task_id, audio_url="https://cdn.test/poll.mp3", duration=10.0)

    mocker.patch.object(music_client, "wait_for_completion", side_effect=complete_via_callback)

    result = service.synthesize_song(song)
    assert result.status == SongStatus.COMPLETED
    assert result.audio_url == "https://cdn.test/callback.mp3"

def test_synthesis_raises_when_callback_failed_first(session: Session, user, music_client, mocker):
    """コールバックで失敗が確定した後にポーリングが成功しても、失敗として扱う"""
    song = _generating_song(session, user, task_id=None)
    service = SongGenerationService(session, music_client=music_client)
    mocker.patch.object(music_client, "start_generation", return_value="task-123")

    def fail_via_callback(task_id):
        with Session(session.get_bind()) as other:
            SongGenerationService(other).reconcile_callback(
                {"code": 500, "msg": "Audio generation failed", "data": {"task_id": task_id}}
            )
        from infra.clients.suno_client import SynthesisResult
        return SynthesisResult(task_id=task_id, audio_url="https://cdn.test/poll.mp3", duration=10.0)

    mocker.patch.object(music_client, "wait_for_completion", side_effect=fail_via_callback)

    with pytest.raises(SynthesisRejectedError) as exc:
        service.synthesize_song(song)
    assert "Audio generation failed" in exc.value.message

    session.rollback()
    stored = session.get(Song, song.id)
    assert stored.status == SongStatus.ERROR
    assert stored.audio_url is None

@pytest.mark.parametrize("error", [
    SynthesisRejectedError("Song generation failed: GENERATE_AUDIO_FAILED"),
    SynthesisTimeoutError("Song generation timed out", attempts=5, task_id="task-123"),
])
def test_synthesis_returns_callback_result_when_polling_fails(session: Session, user, music_client, mocker, error):
    """コールバックで完了した後にポーリングが失敗しても、完了した曲を返す"""
    song = _generating_song(session, user, task_id=None)
    service = SongGenerationService(session, music_client=music_client)
    mocker.patch.object(music_client, "start_generation", return_value="task-123")

    def complete_then_fail(task_id):
        with Session(session.get_bind()) as other:
            SongGenerationService(other).reconcile_callback(_complete_callback(audio_url="https://cdn.test/callback.mp3"))
        raise error

    mocker.patch.object(music_client, "wait_for_completion", side_effect=complete_then_fail)

    result = service.synthesize_song(song)
    assert result.status == SongStatus.COMPLETED
    assert result.audio_url == "https://cdn.test/callback.mp3"
    assert result.error_message is None

def test_run_background_synthesis(session: Session, user, music_client, suno_responses):
    song = _generating_song(session, user, task_id=None)
    suno_responses([suno_task_started("bg-task"), suno_record("SUCCESS", audio_url=AUDIO_URL)])

    run_background_synthesis(song.id, user.id, music_client)

    session.rollback()
    stored = session.get(Song, song.id)
    assert stored.status == SongStatus.COMPLETED
    assert stored.task_id == "bg-task"

def test_run_background_synthesis_records_failure(session: Session, user, music_client, suno_responses):
    song = _generating_song(session, user, task_id=None)
    suno_responses([suno_task_started(), suno_record("SENSITIVE_WORD_ERROR")])

    # 例外は呼び出し元 (BackgroundTasks) へ伝播しない
    run_background_synthesis(song.id, user.id, music_client)

    session.rollback()
    stored = session.get(Song, song.id)
    assert stored.status == SongStatus.ERROR
    assert stored.audio_url is None
