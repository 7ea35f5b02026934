"""Client service - Business logic for client operations"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Client
from ...shared.errors import ClientAlreadyExists, InvalidInput, NotFound, StoreUnavailable
from .repository import ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(self) -> list[Client]:
        return self.repo.get_clients(self.db)

    def get_client(self, client_id: int) -> Client:
        client = self.repo.get_client_by_id(self.db, client_id)
        if not client:
            raise NotFound("Client", client_id)
        return client

    def create_client(self, data: ClientCreate) -> Client:
        """Create a new client; national id must be unique"""
        logger.info("📥 Creating client")
        try:
            return self.repo.create_client(self.db, **data.model_dump())
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Duplicate national id {data.national_id}")
            raise ClientAlreadyExists(data.national_id) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create client: {e}")
            raise StoreUnavailable("Could not create the client") from e

    def update_client(self, client_id: int, data: ClientUpdate) -> Client:
        """Update the bot / secretary flags of a client"""
        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise InvalidInput("No fields provided to update")

        client = self.get_client(client_id)
        try:
            return self.repo.update_client(self.db, client, **updates)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update client {client_id}: {e}")
            raise StoreUnavailable("Could not update the client") from e
