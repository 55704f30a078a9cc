from sqlmodel import Session, select
from domain.constants import CURATED_PLAYLISTS
from domain.models.playlist import Playlist
from utils.logger import get_logger

logger = get_logger(__name__)

def seed_initial_data(session: Session):
    """初期データ投入 (朝・昼・夜のキュレーション済みプレイリスト)"""
    created = 0
    for data in CURATED_PLAYLISTS:
        existing = session.exec(select(Playlist).where(Playlist.type == data["type"])).first()
        if existing:
            if existing.description != data["description"]:
                existing.description = data["description"]
                session.add(existing)
            continue
        session.add(Playlist(**data))
        created += 1

    session.commit()
    if created:
        logger.info(f"Seeded {created} curated playlists")
