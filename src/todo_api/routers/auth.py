from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from ..auth import get_current_identity, get_token_service, get_user_repository
from ..errors import InvalidCredentials, UserNotFound
from ..repositories import UserRepository
from ..schemas import AuthResponse, LoginRequest, RegisterRequest, UserOut
from ..tokens import TokenIdentity, TokenService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
)


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and return it together with a bearer token.",
    responses={
        201: {"description": "User registered"},
        400: {"description": "Validation error"},
        409: {"description": "Email already exists"},
    },
)
def register(
    payload: RegisterRequest,
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """
    Register a new user. EmailExists propagates as 409.
    """
    user = users.create(payload.email, payload.password, payload.name)
    logger.info("Registered user id=%s", user["id"])
    token = tokens.issue(user["id"], user["email"])
    return AuthResponse(user=UserOut(**user), token=token)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Exchange email and password for a bearer token.",
    responses={
        200: {"description": "Login successful"},
        401: {"description": "Invalid email or password"},
    },
)
def login(
    payload: LoginRequest,
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """
    Log in. Unknown email and wrong password produce the same 401.
    """
    user = users.find_by_email(payload.email)
    if user is None or not users.verify_password(payload.password, user["password"]):
        logger.warning("Failed login for %s", payload.email)
        raise InvalidCredentials()

    public_user = {k: v for k, v in user.items() if k != "password"}
    logger.info("User id=%s logged in", user["id"])
    token = tokens.issue(user["id"], user["email"])
    return AuthResponse(user=UserOut(**public_user), token=token)


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=UserOut,
    summary="Current user",
    description="Return the account the bearer token belongs to.",
    responses={
        200: {"description": "User found"},
        401: {"description": "Missing or invalid token"},
        404: {"description": "User no longer exists"},
    },
)
def me(
    identity: TokenIdentity = Depends(get_current_identity),
    users: UserRepository = Depends(get_user_repository),
) -> UserOut:
    user = users.find_by_id(identity.user_id)
    if user is None:
        raise UserNotFound()
    return UserOut(**user)
