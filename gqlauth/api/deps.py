"""API dependencies for token services and caller identity.

Callers authenticate with the ``Authorization`` header in one of two forms:

- ``Authorization: Bearer <accessToken>``  (opaque token value)
- ``Authorization: JWT <jwt>``             (signed token from login/refresh)

Both resolve to the same stored access token, so revoking the token revokes
the JWT wrapping it.
"""
from typing import List

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from gqlauth.config import settings
from gqlauth.database import get_db
from gqlauth.models.access_token import AccessToken
from gqlauth.models.user import User
from gqlauth.repositories import (
    SqlAccessTokenStore,
    SqlRefreshTokenStore,
    SqlSchemaRegistry,
    SqlUserDirectory,
)
from gqlauth.services.token_service import TokenLifecycleService
from gqlauth.utils.jwt_utils import TokenHooks

# Process-wide extension points; register before_sign / before_verify hooks at startup
token_hooks = TokenHooks()


def build_token_service(db: Session) -> TokenLifecycleService:
    return TokenLifecycleService(
        settings,
        access_tokens=SqlAccessTokenStore(db),
        refresh_tokens=SqlRefreshTokenStore(db),
        users=SqlUserDirectory(db),
        schemas=SqlSchemaRegistry(db),
        hooks=token_hooks,
    )


def get_token_service(db: Session = Depends(get_db)) -> TokenLifecycleService:
    return build_token_service(db)


def authorization_headers(request: Request) -> List[str]:
    """All Authorization header values, in order"""
    return request.headers.getlist("authorization")


def get_current_token(
    request: Request,
    service: TokenLifecycleService = Depends(get_token_service),
) -> AccessToken:
    """Resolve the caller's access token; raises TokenAuthError on failure"""
    return service.current_token(authorization_headers(request))


def get_current_user(
    request: Request,
    service: TokenLifecycleService = Depends(get_token_service),
) -> User:
    """Resolve the caller's user from the access token name"""
    return service.resolve_user_from_token(authorization_headers(request))
