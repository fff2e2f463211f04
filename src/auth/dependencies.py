from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from src.auth.schemas import CurrentUser
from src.auth.utils import verify_token
from src.exceptions import AuthenticationError, ForbiddenError
from src.models import Role

bearer_scheme = HTTPBearer(auto_error=False)

def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> CurrentUser:
    """Resolve the caller from the bearer token; the token's claims are trusted"""
    if credentials is None:
        raise AuthenticationError("No authentication found")

    token_data = verify_token(credentials.credentials)
    user = CurrentUser(id=token_data.sub, email=token_data.email, role=token_data.role)
    # Per-user rate limiting keys off this
    request.state.current_user = user
    return user

def require_role(role: Role):
    """Dependency factory admitting only callers with the given role"""
    def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role != role:
            raise ForbiddenError(f"{role.value.capitalize()} access required")
        return current_user
    return checker

require_admin = require_role(Role.ADMIN)
require_driver = require_role(Role.DRIVER)
require_traveller = require_role(Role.TRAVELLER)
