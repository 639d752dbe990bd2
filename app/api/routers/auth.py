"""
app/api/routers/auth.py

Authentication HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import require_jwt
from app.schemas.auth import LoginRequest, TokenResponse, UserProfileResponse
from app.schemas.bulk_upload import ErrorResponse
from app.services.auth_service import AuthenticationError, AuthResult, AuthService, get_auth_service

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
    },
)


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Exchange admin credentials for a JWT access token.
    """

    try:
        token = auth_service.login(body.username, body.password)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    return TokenResponse(access_token=token)


@router.get("/me", response_model=UserProfileResponse)
def me(auth: AuthResult = Depends(require_jwt)) -> UserProfileResponse:
    return UserProfileResponse(username=auth.subject, role=auth.claims.get("role"))
