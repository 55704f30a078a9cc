from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from infra.database.connection import get_session
from domain.models.user import User
from api.deps import get_current_user
from api.schemas.common import MantraCreate
from app.services.mantra_app_service import MantraAppService

router = APIRouter()

@router.get("/api/mantras")
def get_mantras(user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    service = MantraAppService(session)
    return service.get_mantras(user.id)

@router.post("/api/mantras")
def create_mantra(mantra: MantraCreate, user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    service = MantraAppService(session)
    return service.create_mantra(user.id, mantra.text)

@router.get("/api/mantras/{mantra_id}")
def get_mantra(mantra_id: str, user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    service = MantraAppService(session)
    mantra = service.get_mantra(mantra_id, user.id)
    if not mantra:
        raise HTTPException(status_code=404, detail="Mantra not found")
    return mantra
