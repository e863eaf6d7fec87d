import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header

from app.api.dependencies import get_users_service
from app.core.auth import (
    Identity,
    get_session_store,
    parse_bearer_token,
    require_identity,
)
from app.core.errors import ErrorCode, ForbiddenAppError
from app.core.rate_limit import enforce_login_rate_limit, reset_login_attempts
from app.schemas.account import LoginRequest, LoginResponse
from app.services.account_service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/authentication", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    service: Annotated[AccountService, Depends(get_users_service)],
    limiter_key: Annotated[str | None, Depends(enforce_login_rate_limit)],
) -> LoginResponse:
    """Exchange email and password for a bearer token.

    Each call counts against the caller's login window before credentials
    are checked; a successful login clears the window.

    Raises:
        RateLimitedAppError: 403 after too many failed attempts.
        ForbiddenAppError: 403 INVALID_CREDENTIALS for a wrong email or password.
    """
    account = service.authenticate(body.email, body.password)
    if account is None:
        logger.warning("auth.login_failed")
        raise ForbiddenAppError(
            code=ErrorCode.INVALID_CREDENTIALS,
            message="Wrong email or password",
        )

    reset_login_attempts(limiter_key)
    identity = Identity(user_id=account["id"], email=account["email"], name=account["name"])
    token = get_session_store().issue(identity)
    logger.info("auth.login_succeeded", extra={"user_id": identity.user_id})

    return LoginResponse(
        email=identity.email,
        name=identity.name,
        user_id=identity.user_id,
        token=token,
    )


@router.post("/logout", status_code=204)
def logout(
    identity: Annotated[Identity, Depends(require_identity)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Revoke the bearer token used for this request."""
    token = parse_bearer_token(authorization)
    if token:
        get_session_store().revoke(token)
    logger.info("auth.logout", extra={"user_id": identity.user_id})
