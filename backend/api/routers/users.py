from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from infra.database.connection import get_session
from domain.models.user import User
from api.deps import get_current_user
from api.schemas.common import UserCreate
from app.services.user_app_service import UserAppService

router = APIRouter()

@router.post("/api/users")
def create_user(user: UserCreate, session: Session = Depends(get_session)):
    service = UserAppService(session)
    try:
        return service.create_user(user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/api/users/me")
def get_me(user: User = Depends(get_current_user)):
    return user
