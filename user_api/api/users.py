"""User account API endpoints."""

from fastapi import APIRouter, Depends, status
import structlog

from user_api.api.dependencies import (
    get_current_user,
    get_user_service,
    require_account_owner,
)
from user_api.models.auth import (
    AuthResponse,
    CreateUserRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenCheckResponse,
    UpdateUserRequest,
)
from user_api.models.user import User
from user_api.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/user", tags=["Users"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Create a new account.

    Raises:
        DuplicateAccountError (400): If the e-mail is already registered
    """
    return await user_service.create(request)


@router.post("/login")
async def login(
    request: LoginRequest,
    user_service: UserService = Depends(get_user_service),
) -> AuthResponse:
    """Login with e-mail and password.

    Raises:
        InvalidCredentialsError (401): If e-mail or password is wrong
    """
    result = await user_service.login(request.email, request.password)
    return AuthResponse(user=result.user, token=result.token)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    user_service: UserService = Depends(get_user_service),
) -> AuthResponse:
    """Create an account and return it with an access token."""
    result = await user_service.register(request)
    return AuthResponse(user=result.user, token=result.token)


@router.get("")
async def list_users(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> list[User]:
    """List all accounts (authenticated)."""
    return await user_service.list_all()


@router.get("/check-token")
async def check_token(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> TokenCheckResponse:
    """Confirm the caller's token is valid and hand back a renewed one."""
    result = user_service.refresh_token(current_user)
    return TokenCheckResponse(user=result.user, token=result.token)


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> User:
    """Get the authenticated account."""
    return current_user


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Get an account by id.

    Raises:
        UserNotFoundError (404): If no account has this id
    """
    return await user_service.find_by_id(user_id)


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    current_user: User = Depends(require_account_owner),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Update the caller's own account.

    Raises:
        ForbiddenError (403): If the id is not the caller's
        UserNotFoundError (404): If the account no longer exists
    """
    message = await user_service.update(user_id, request)
    return MessageResponse(message=message)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Delete an account (authenticated).

    Raises:
        UserNotFoundError (404): If no account has this id
    """
    message = await user_service.remove(user_id)
    logger.info("account_removed", actor_id=str(current_user.id), target_user_id=user_id)
    return MessageResponse(message=message)
