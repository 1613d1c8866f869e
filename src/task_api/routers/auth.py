from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..container import Services, get_services
from ..schemas import AuthResponse, LoginRequest, RegisterRequest

router = APIRouter(tags=["auth"])


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and return it together with a session token.",
    responses={
        201: {"description": "User successfully registered"},
        400: {"description": "Validation error"},
        409: {"description": "User with this email already exists"},
    },
)
def register(payload: RegisterRequest, services: Services = Depends(get_services)) -> AuthResponse:
    """
    Register a new account.
    """
    user, token = services.accounts.register(payload.name, payload.email, payload.password)
    return AuthResponse(user=user, token=token)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Exchange email and password for a session token.",
    responses={
        200: {"description": "User successfully logged in"},
        400: {"description": "Validation error"},
        401: {"description": "Invalid credentials"},
    },
)
def login(payload: LoginRequest, services: Services = Depends(get_services)) -> AuthResponse:
    """
    Log in with email and password.
    """
    user, token = services.accounts.login(payload.email, payload.password)
    return AuthResponse(user=user, token=token)  # type: ignore[arg-type]
