from typing import List
from sqlalchemy.orm import Session

from src.admin.schemas import DriverCreate
from src.auth.service import UserService
from src.config import settings
from src.exceptions import InvalidRequestError, NotFoundError
from src.logger_config import logger
from src.models import Journey, Role, User


class AdminManagementService:
    """Service for administrative account management"""

    def __init__(self, db: Session):
        self.db = db

    def list_drivers(self) -> List[User]:
        return UserService.get_users_by_role(self.db, Role.DRIVER)

    def create_driver(self, data: DriverCreate) -> User:
        return UserService.create_user(
            self.db, email=data.email, password=data.password, name=data.name, role=Role.DRIVER
        )

    def delete_driver(self, driver_id: str) -> None:
        """Delete a driver account, unassigning it from its journeys first"""
        driver = self.db.get(User, driver_id)
        if not driver:
            raise NotFoundError("Driver not found")
        if driver.role != Role.DRIVER:
            raise InvalidRequestError("User is not a driver")

        unassigned = self.db.query(Journey).filter(
            Journey.driver_id == driver_id
        ).update({Journey.driver_id: None}, synchronize_session=False)
        self.db.delete(driver)
        self.db.commit()
        logger.info(f"Driver {driver_id} deleted, unassigned from {unassigned} journey(s)")

    def ensure_admin_account(self) -> bool:
        """Create the bootstrap admin from settings if it does not exist yet"""
        if UserService.get_user_by_email(self.db, settings.ADMIN_EMAIL):
            return False
        UserService.create_user(
            self.db,
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            name=settings.ADMIN_NAME,
            role=Role.ADMIN
        )
        return True
