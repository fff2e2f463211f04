from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from src.database import get_db
from src.auth.schemas import RegisterRequest, LoginRequest, AuthResponse, UserInfo, CurrentUser
from src.auth.service import UserService
from src.auth.utils import create_access_token
from src.auth.dependencies import get_current_user
from src.exceptions import AuthenticationError, NotFoundError
from src.models import Role

router = APIRouter()

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new traveller account"""
    user = UserService.create_user(
        db, email=payload.email, password=payload.password, name=payload.name, role=Role.TRAVELLER
    )
    return AuthResponse(token=create_access_token(user), user=UserInfo.model_validate(user))

@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password"""
    user = UserService.authenticate_user(db, payload.email, payload.password)
    if not user:
        raise AuthenticationError("Invalid email or password")
    return AuthResponse(token=create_access_token(user), user=UserInfo.model_validate(user))

@router.get("/me", response_model=UserInfo)
def read_users_me(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get current user profile"""
    user = UserService.get_user_by_id(db, current_user.id)
    if not user:
        raise NotFoundError("User not found")
    return user
