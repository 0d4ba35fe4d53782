"""Token lifecycle: issue, refresh, revoke and sweep credentials.

Each issuance produces a pair:

- an opaque :class:`AccessToken` row wrapped in a signed JWT (the ``jwt`` the
  client sends as ``JWT <jwt>``), and
- a single-use :class:`RefreshToken`, also delivered as the
  ``gql_refreshToken`` cookie.

Expired rows are removed opportunistically at the start of :meth:`create` and
:meth:`refresh`; there is no background job. Reads still reject expired
tokens regardless of when the sweep last ran.

Multi-step operations are not rolled back if the request dies halfway. An
access token persisted without its refresh token is reclaimed by the sweep
once it expires.
"""
from datetime import datetime, timedelta
from typing import Iterable, NamedTuple, Optional, Tuple

from gqlauth.config import Settings
from gqlauth.errors import (
    INVALID,
    ConfigError,
    InvalidCredentialError,
    InvalidSchemaError,
    TokenNotFoundError,
    UserNotFoundError,
)
from gqlauth.models.access_token import AccessToken
from gqlauth.models.refresh_token import RefreshToken
from gqlauth.models.user import User
from gqlauth.repositories.base import AccessTokenStore, RefreshTokenStore
from gqlauth.repositories.directory import SchemaRegistry, UserDirectory
from gqlauth.services.credentials import CredentialExtractor
from gqlauth.utils.clock import Clock, as_utc, generate_random_string, microtime, to_millis
from gqlauth.utils.jwt_utils import ClaimsBuilder, TokenHooks, encode_token
from gqlauth.utils.logger import logger

INVALID_REFRESH_TOKEN = "Invalid Refresh Token"


class RefreshCookie(NamedTuple):
    """Cookie carrying the refresh token; ``expires`` None = session cookie"""
    name: str
    value: str
    expires: Optional[datetime]
    samesite: str
    path: str = "/"
    secure: bool = True
    httponly: bool = True

    def as_kwargs(self) -> dict:
        """Keyword arguments for ``Response.set_cookie``"""
        return {
            "key": self.name,
            "value": self.value,
            "expires": self.expires,
            "path": self.path,
            "secure": self.secure,
            "httponly": self.httponly,
            "samesite": self.samesite,
        }


class IssuedTokens(NamedTuple):
    """Result of :meth:`TokenLifecycleService.create`"""
    jwt: str
    jwt_expires_at: int              # ms since epoch
    refresh_token: str
    refresh_token_expires_at: int    # ms since epoch
    user: User
    schema_id: int
    schema_name: str
    access_token_id: int
    cookie: RefreshCookie


def user_id_from_token_name(name: str) -> str:
    """Extract ``{user_id}`` from a ``user-{user_id}-{microtime}`` token name"""
    parts = name.split("-")
    if len(parts) < 2:
        raise UserNotFoundError()
    return parts[1]


class TokenLifecycleService:
    """Composes the token stores, signing and header extraction"""

    def __init__(
        self,
        settings: Settings,
        access_tokens: AccessTokenStore,
        refresh_tokens: RefreshTokenStore,
        users: UserDirectory,
        schemas: SchemaRegistry,
        hooks: Optional[TokenHooks] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings
        self.access_tokens = access_tokens
        self.refresh_tokens = refresh_tokens
        self.users = users
        self.schemas = schemas
        self.hooks = hooks or TokenHooks()
        self.clock = clock or Clock()
        self.extractor = CredentialExtractor(settings, access_tokens, self.hooks, self.clock)

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def create(self, user: User, schema_id: int) -> IssuedTokens:
        """Issue a new access/refresh pair for ``user`` scoped to ``schema_id``.

        Raises:
            ConfigError: no signing secret is configured.
            InvalidSchemaError: ``schema_id`` does not resolve to a schema.
            PersistenceError: either token could not be stored.
        """
        self.sweep()

        secret_key = self.settings.JWT_SECRET_KEY
        if not secret_key:
            raise ConfigError()

        schema = self.schemas.get_schema(schema_id)
        if schema is None:
            raise InvalidSchemaError()

        now = self.clock.now()
        expires_at = now + timedelta(seconds=self.settings.JWT_EXPIRE_SECONDS)

        access_value = generate_random_string()
        access_token = self.access_tokens.put(
            AccessToken(
                name=f"user-{user.id}-{microtime(now)}",
                access_token=access_value,
                enabled=True,
                schema_id=schema_id,
                expiry_date=expires_at,
            )
        )
        access_token_id = access_token.id

        builder = ClaimsBuilder(
            issuer=self.settings.JWT_ISSUER,
            issued_at=now,
            expires_at=expires_at,
            subject=str(user.id),
            access_token=access_value,
        )
        (
            builder.with_claim("fullName", user.full_name)
            .with_claim("email", user.email)
            .with_claim("groups", [group.name for group in user.groups])
            .with_claim("schema", schema.name)
            .with_claim("admin", bool(user.admin))
        )
        self.hooks.run_before_sign(builder, user)

        jwt = encode_token(builder.claims(), secret_key, algorithm=self.settings.JWT_ALGORITHM)

        refresh_value = generate_random_string()
        refresh_expires_at = now + timedelta(seconds=self.settings.JWT_REFRESH_EXPIRE_SECONDS)
        self.refresh_tokens.put(
            RefreshToken(
                token=refresh_value,
                user_id=user.id,
                schema_id=schema_id,
                expiry_date=refresh_expires_at,
            )
        )

        logger.info(
            f"Issued token pair for user {user.id}",
            extra={"user_id": user.id, "token_id": access_token_id, "action": "issue_token"},
        )

        return IssuedTokens(
            jwt=jwt,
            jwt_expires_at=to_millis(expires_at),
            refresh_token=refresh_value,
            refresh_token_expires_at=to_millis(refresh_expires_at),
            user=user,
            schema_id=schema_id,
            schema_name=schema.name,
            access_token_id=access_token_id,
            cookie=self._refresh_cookie(refresh_value, now),
        )

    def refresh(
        self,
        cookie_value: Optional[str] = None,
        argument_value: Optional[str] = None,
    ) -> IssuedTokens:
        """Redeem a refresh token for a new pair.

        The cookie value takes precedence over the explicit argument. The old
        refresh token is deleted before the new pair is issued; only the
        caller whose delete removed the row may proceed.
        """
        value = cookie_value or argument_value
        if not value:
            raise InvalidCredentialError(INVALID_REFRESH_TOKEN, code=INVALID)

        self.sweep()

        record = self.refresh_tokens.get_by_token(value)
        if record is None or as_utc(record.expiry_date) <= self.clock.now():
            raise InvalidCredentialError(INVALID_REFRESH_TOKEN, code=INVALID)

        user = self.users.get_user_by_id(record.user_id)
        if user is None:
            raise UserNotFoundError()

        schema_id = record.schema_id
        if not schema_id:
            raise InvalidSchemaError()

        if self.refresh_tokens.delete_by_token(value) != 1:
            # Another request redeemed it between the lookup and the delete
            raise InvalidCredentialError(INVALID_REFRESH_TOKEN, code=INVALID)

        logger.info(
            f"Refresh token redeemed for user {user.id}",
            extra={"user_id": user.id, "action": "refresh_token"},
        )
        return self.create(user, schema_id)

    # ------------------------------------------------------------------
    # Revocation
    # ------------------------------------------------------------------

    def revoke_current(self, token_id: int) -> None:
        if self.access_tokens.delete_by_id(token_id) == 0:
            raise TokenNotFoundError()
        logger.info(f"Revoked access token {token_id}", extra={"token_id": token_id, "action": "revoke_token"})

    def revoke_all_for_user(self, user_id: int) -> int:
        """Delete every access token issued to ``user_id``; returns the count"""
        tokens = self.access_tokens.find_by_name_pattern(f"user-{user_id}-%")
        if not tokens:
            raise TokenNotFoundError()

        deleted = 0
        for token in tokens:
            deleted += self.access_tokens.delete_by_id(token.id)

        logger.info(
            f"Revoked {deleted} access tokens for user {user_id}",
            extra={"user_id": user_id, "count": deleted, "action": "revoke_all_tokens"},
        )
        return deleted

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def current_token(self, header_values: Iterable[str]) -> AccessToken:
        return self.extractor.extract(header_values)

    def resolve_user_from_token(self, header_values: Iterable[str]) -> User:
        """Identify the caller from the access token's name.

        The user id comes from the stored token name, not from the JWT claims.
        """
        token = self.extractor.extract(header_values)
        try:
            user_id = int(user_id_from_token_name(token.name))
        except ValueError:
            raise UserNotFoundError()

        user = self.users.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def sweep(self) -> Tuple[int, int]:
        """Delete expired user access tokens and refresh tokens"""
        now = self.clock.now()
        access_deleted = self.access_tokens.delete_expired(now)
        refresh_deleted = self.refresh_tokens.delete_expired(now)
        if access_deleted or refresh_deleted:
            logger.info(
                f"Swept {access_deleted} access tokens and {refresh_deleted} refresh tokens",
                extra={"count": access_deleted + refresh_deleted, "action": "sweep"},
            )
        return access_deleted, refresh_deleted

    def _refresh_cookie(self, value: str, now: datetime) -> RefreshCookie:
        lifetime = self.settings.JWT_REFRESH_EXPIRE_SECONDS
        expires = now + timedelta(seconds=lifetime) if lifetime else None
        return RefreshCookie(
            name=self.settings.REFRESH_COOKIE_NAME,
            value=value,
            expires=expires,
            samesite=self.settings.SAME_SITE_POLICY.lower(),
        )
