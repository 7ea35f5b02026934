"""Doctor service - Business logic for doctor management"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Doctor
from ...shared.errors import InvalidInput, NotFound, StoreUnavailable
from .repository import DoctorRepository
from .schemas import DoctorCreate, DoctorUpdate

logger = logging.getLogger(__name__)


class DoctorService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorRepository()

    def get_doctors(self) -> list[Doctor]:
        return self.repo.get_doctors(self.db)

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.repo.get_doctor_by_id(self.db, doctor_id)
        if not doctor:
            raise NotFound("Doctor", doctor_id)
        return doctor

    def create_doctor(self, data: DoctorCreate) -> Doctor:
        try:
            doctor = self.repo.create_doctor(self.db, **data.model_dump())
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create doctor: {e}")
            raise StoreUnavailable("Could not create the doctor") from e

        logger.info(f"✅ Created doctor {doctor.id}")
        return doctor

    def update_doctor(self, doctor_id: int, data: DoctorUpdate) -> Doctor:
        """Apply non-null fields; working hours are informational only"""
        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise InvalidInput("No valid fields provided to update")

        doctor = self.get_doctor(doctor_id)
        try:
            return self.repo.update_doctor(self.db, doctor, **updates)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update doctor {doctor_id}: {e}")
            raise StoreUnavailable("Could not update the doctor") from e
