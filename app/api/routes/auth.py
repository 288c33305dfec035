from fastapi import APIRouter, Depends, Request, status

from app.core.rate_limit import enforce_rate_limit
from app.schemas.auth import LoginRequest, SignUpRequest, TokenResponse, UserPublic
from app.services.auth_service import AuthService

router = APIRouter(tags=["Authentication"])

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"description": "Validation error"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"description": "Internal or configuration error"},
}


def get_auth_service(request: Request) -> AuthService:
    """Resolve the AuthService built by the app factory."""
    return request.app.state.auth_service


@router.post(
    "/signup",
    response_model=UserPublic,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_409_CONFLICT: {"description": "A user with this email already exists"},
        status.HTTP_429_TOO_MANY_REQUESTS: {"description": "Rate limit exceeded for this client IP"},
    },
)
async def signup(
    payload: SignUpRequest,
    service: AuthService = Depends(get_auth_service),
) -> UserPublic:
    """Register a new user.

    Rate-limited per client IP. The created user is returned without any
    password material.
    """
    return await service.signup(payload)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_401_UNAUTHORIZED: {"description": "Invalid email or password"},
    },
)
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Authenticate with email and password to obtain a bearer token."""
    return await service.login(payload)
