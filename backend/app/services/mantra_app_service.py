from typing import List, Optional
from sqlmodel import Session
from domain.models.mantra import Mantra
from infra.repositories.mantra_repository import MantraRepository

class MantraAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = MantraRepository(session)

    def get_mantras(self, user_id: str) -> List[Mantra]:
        return self.repository.find_all(user_id)

    def get_mantra(self, mantra_id: str, user_id: str) -> Optional[Mantra]:
        return self.repository.get_by_id(mantra_id, user_id)

    def create_mantra(self, user_id: str, text: str) -> Mantra:
        return self.repository.create(Mantra(user_id=user_id, text=text.strip()))
