from typing import List, Optional
from sqlmodel import Session, select
from domain.models.mantra import Mantra

class MantraRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_all(self, user_id: str) -> List[Mantra]:
        statement = select(Mantra).where(Mantra.user_id == user_id).order_by(Mantra.created_at)
        return self.session.exec(statement).all()

    def get_by_id(self, mantra_id: str, user_id: str) -> Optional[Mantra]:
        statement = select(Mantra).where(Mantra.id == mantra_id).where(Mantra.user_id == user_id)
        return self.session.exec(statement).first()

    def create(self, mantra: Mantra) -> Mantra:
        self.session.add(mantra)
        self.session.commit()
        self.session.refresh(mantra)
        return mantra
