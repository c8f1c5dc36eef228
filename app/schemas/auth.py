from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from app.models import UserRole

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)

class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    username: str
    email: str
    full_name: str
    role: UserRole

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    full_name: str
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None
