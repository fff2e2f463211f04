from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from src.models import Role

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class UserInfo(BaseModel):
    id: str
    email: str
    name: str
    role: Role

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    token: str
    user: UserInfo

# Identity carried by a verified access token
class CurrentUser(BaseModel):
    id: str
    email: str
    role: Role

class TokenData(BaseModel):
    sub: str
    email: str
    role: Role
    exp: Optional[datetime] = None
