"""Dashboard bootstrap: everything the agenda UI needs in one request"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..database import get_db
from ..domain.clients.repository import ClientRepository
from ..domain.clients.schemas import ClientResponse
from ..domain.doctors.repository import DoctorRepository
from ..domain.doctors.schemas import DoctorResponse
from ..domain.scheduling.repository import AppointmentRepository
from ..domain.scheduling.schemas import AppointmentResponse
from ..shared.errors import StoreUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])


@router.get("/initial-data")
async def get_initial_data(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Doctors, appointments (with doctor/client joins) and clients"""
    try:
        doctors = DoctorRepository.get_doctors(db)
        appointments = AppointmentRepository.list_appointments(db)
        clients = ClientRepository.get_clients(db)
    except SQLAlchemyError as e:
        logger.error(f"❌ Failed to load initial data: {e}")
        raise StoreUnavailable("Could not load initial data") from e

    return {
        "doctors": [DoctorResponse.model_validate(d).model_dump(mode="json") for d in doctors],
        "appointments": [
            AppointmentResponse.model_validate(a).model_dump(mode="json") for a in appointments
        ],
        "clients": [ClientResponse.model_validate(c).model_dump(mode="json") for c in clients],
    }
