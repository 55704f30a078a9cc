from fastapi import APIRouter, Depends
from sqlmodel import Session
import duckdb

from infra.database.connection import get_session
from infra.clients.suno_client import SunoClient
from utils.llm import check_llm_status

router = APIRouter()

@router.get("/api/")
def health_check(session: Session = Depends(get_session)):
    db_version = duckdb.__version__
    llm_status = check_llm_status(session)
    music_client = SunoClient.from_session(session)

    return {
        "status": "ok",
        "duckdb_version": db_version,
        "llm_status": llm_status,
        "music_generation_configured": music_client.is_configured
    }
