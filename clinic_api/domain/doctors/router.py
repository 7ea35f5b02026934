"""Doctor router - admin-only doctor management"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user, require_admin
from ...database import get_db
from .schemas import DoctorCreate, DoctorResponse, DoctorUpdate
from .service import DoctorService

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def get_doctor_service(db: Session = Depends(get_db)) -> DoctorService:
    """Dependency injection for DoctorService"""
    return DoctorService(db)


@router.get("", response_model=list[DoctorResponse])
async def get_doctors(
    current_user: CurrentUser = Depends(get_current_user),
    service: DoctorService = Depends(get_doctor_service),
):
    return [DoctorResponse.model_validate(d) for d in service.get_doctors()]


@router.post("", response_model=DoctorResponse, status_code=201)
async def create_doctor(
    data: DoctorCreate,
    admin: CurrentUser = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    return DoctorResponse.model_validate(service.create_doctor(data))


@router.patch("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: int,
    data: DoctorUpdate,
    admin: CurrentUser = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    return DoctorResponse.model_validate(service.update_doctor(doctor_id, data))
