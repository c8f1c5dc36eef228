"""
Authentication router: login, token validation, current user.
"""
from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.database import get_db
from app import models
from app.exceptions import InvalidSession
from app.schemas.common import ApiResponse
from app.schemas.auth import LoginRequest, LoginResponse, UserResponse
from app.security import authenticate, issue_session, verify_session, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Exchange username/password for a bearer token.
    Wrong password, unknown user and inactive account all fail with 400.
    """
    user = authenticate(db, request.username, request.password)
    token = issue_session(user)
    logger.info(f"User {user.username} logged in successfully")

    return ApiResponse.ok(
        "Login successful",
        LoginResponse(
            token=token,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
        ),
    )

@router.get("/validate", response_model=ApiResponse[None])
async def validate_token(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """Check a `Bearer <token>` header"""
    if not authorization or not authorization.startswith("Bearer "):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ApiResponse.fail("Invalid token format").model_dump(mode="json"),
        )

    try:
        verify_session(db, authorization[len("Bearer "):])
    except InvalidSession:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ApiResponse.fail("Invalid or expired token").model_dump(mode="json"),
        )

    return ApiResponse.ok("Token is valid")

@router.get("/me", response_model=ApiResponse[UserResponse])
async def read_users_me(current_user: models.User = Depends(get_current_user)):
    return ApiResponse.ok("User fetched", UserResponse.model_validate(current_user))
