"""Token issuance, refresh, revocation and viewer endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from gqlauth.api.deps import get_current_token, get_current_user, get_token_service
from gqlauth.config import Settings, settings
from gqlauth.errors import INVALID, InvalidCredentialError, InvalidSchemaError
from gqlauth.middleware.monitoring import record_auth_failure, record_token_issued, record_token_revoked
from gqlauth.middleware.rate_limit import get_rate_limit, limiter
from gqlauth.models.access_token import AccessToken
from gqlauth.models.user import User
from gqlauth.schemas.auth import (
    AuthenticateRequest,
    AuthPayload,
    RefreshRequest,
    RevokeResponse,
    UserResponse,
)
from gqlauth.services.token_service import IssuedTokens, TokenLifecycleService

router = APIRouter(prefix="/auth", tags=["authentication"])

INVALID_LOGIN = "We couldn't log you in with the provided details"


def schema_id_for_user(user: User, config: Settings) -> Optional[int]:
    """Pick the schema a login is scoped to.

    ``single`` permission mode uses ``SCHEMA_ID``. ``multiple`` mode looks up the
    user's first group in ``GROUP_SCHEMAS``; a group without an entry gets no schema.
    """
    schema_id = config.SCHEMA_ID
    if config.PERMISSION_TYPE == "multiple" and user.groups:
        schema_id = config.GROUP_SCHEMAS.get(user.groups[0].handle)
    return schema_id


def _respond(response: Response, issued: IssuedTokens) -> AuthPayload:
    response.set_cookie(**issued.cookie.as_kwargs())
    return AuthPayload.from_issued(issued)


# ---------------------------------------------------------------------------
# POST /auth/authenticate
# ---------------------------------------------------------------------------

@router.post("/authenticate", response_model=AuthPayload)
@limiter.limit(get_rate_limit("authenticate"))
def authenticate(
    request: Request,
    response: Response,
    body: AuthenticateRequest,
    service: TokenLifecycleService = Depends(get_token_service),
) -> AuthPayload:
    """Log a user in and return a JWT plus refresh token.

    The refresh token is also set as the ``gql_refreshToken`` cookie.
    """
    user = service.users.get_user_by_username_or_email(body.email)
    if user is None or not service.users.verify_password(user, body.password):
        record_auth_failure("login")
        raise InvalidCredentialError(INVALID_LOGIN, code=INVALID)

    schema_id = schema_id_for_user(user, settings)
    if not schema_id:
        raise InvalidSchemaError()

    service.users.record_login(user, service.clock.now())
    issued = service.create(user, schema_id)
    record_token_issued("authenticate")
    return _respond(response, issued)


# ---------------------------------------------------------------------------
# POST /auth/refresh
# ---------------------------------------------------------------------------

@router.post("/refresh", response_model=AuthPayload)
@limiter.limit(get_rate_limit("refresh"))
def refresh_token(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    service: TokenLifecycleService = Depends(get_token_service),
) -> AuthPayload:
    """Exchange a refresh token for a new pair.

    Reads the ``gql_refreshToken`` cookie first and falls back to the
    ``refreshToken`` body field. Each refresh token works once.
    """
    issued = service.refresh(
        cookie_value=request.cookies.get(settings.REFRESH_COOKIE_NAME),
        argument_value=body.refresh_token if body else None,
    )
    record_token_issued("refresh")
    return _respond(response, issued)


# ---------------------------------------------------------------------------
# GET /auth/viewer
# ---------------------------------------------------------------------------

@router.get("/viewer", response_model=UserResponse)
def viewer(user: User = Depends(get_current_user)) -> UserResponse:
    """Return the authenticated user"""
    return UserResponse.from_user(user)


# ---------------------------------------------------------------------------
# POST /auth/revoke, /auth/revoke-all
# ---------------------------------------------------------------------------

@router.post("/revoke", response_model=RevokeResponse)
def revoke_current_token(
    token: AccessToken = Depends(get_current_token),
    service: TokenLifecycleService = Depends(get_token_service),
) -> RevokeResponse:
    """Delete the caller's access token (log out of this device)"""
    service.revoke_current(token.id)
    record_token_revoked("current")
    return RevokeResponse(success=True)


@router.post("/revoke-all", response_model=RevokeResponse)
def revoke_all_tokens(
    user: User = Depends(get_current_user),
    service: TokenLifecycleService = Depends(get_token_service),
) -> RevokeResponse:
    """Delete every access token of the caller (log out of all devices)"""
    revoked = service.revoke_all_for_user(user.id)
    record_token_revoked("all", revoked)
    return RevokeResponse(success=True, revoked=revoked)
