from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
from src.models import User, Role
from src.auth.utils import get_password_hash, verify_password
from src.exceptions import ConflictError
from src.logger_config import logger

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_users_by_role(db: Session, role: Role) -> List[User]:
        return db.query(User).filter(User.role == role).order_by(User.created_at).all()

    @staticmethod
    def create_user(db: Session, email: str, password: str, name: str, role: Role = Role.TRAVELLER) -> User:
        """Create a new user with the given role"""
        if UserService.get_user_by_email(db, email):
            raise ConflictError("Email already registered")

        db_user = User(
            email=email,
            password_hash=get_password_hash(password),
            name=name,
            role=role
        )

        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
        except IntegrityError:
            db.rollback()
            raise ConflictError("Email already registered")

        logger.info(f"Created {role.value} account {email}")
        return db_user

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = UserService.get_user_by_email(db, email)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user
