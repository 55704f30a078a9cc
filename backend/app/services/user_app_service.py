from typing import Optional
from sqlmodel import Session
from domain.models.user import User
from infra.repositories.user_repository import UserRepository
from api.schemas.common import UserCreate

class UserAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = UserRepository(session)

    def create_user(self, user: UserCreate) -> User:
        if self.repository.get_by_username(user.username):
            raise ValueError(f"Username '{user.username}' is already taken")
        return self.repository.create(User(username=user.username, email=user.email))

    def get_user(self, user_id: str) -> Optional[User]:
        return self.repository.get_by_id(user_id)
