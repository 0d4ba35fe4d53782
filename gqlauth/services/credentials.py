"""Authorization header parsing and access-token resolution.

Two schemes are accepted in the ``Authorization`` header:

- ``Bearer <accessToken>``: the opaque token value, looked up directly
- ``JWT <signed token>``: a signed token whose ``accessToken`` claim is then
  looked up the same way

Headers may repeat and each may hold comma-separated credentials. The first
segment that matches either scheme is the one used; a failure to resolve it is
final and later segments are not tried.
"""
import re
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from gqlauth.config import Settings
from gqlauth.errors import (
    INVALID,
    ExpiredCredentialError,
    InvalidCredentialError,
    MalformedTokenError,
    MissingCredentialError,
    SignatureError,
)
from gqlauth.models.access_token import AccessToken
from gqlauth.repositories.base import AccessTokenStore
from gqlauth.utils.clock import Clock, to_seconds
from gqlauth.utils.jwt_utils import Constraint, TokenHooks, decode_token
from gqlauth.utils.logger import logger

BEARER = "bearer"
JWT = "jwt"

_SCHEMES = (
    (BEARER, re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)),
    (JWT, re.compile(r"^JWT\s+(.+)$", re.IGNORECASE)),
)


def find_credential(header_values: Iterable[str]) -> Optional[Tuple[str, str]]:
    """Return ``(scheme, value)`` for the first recognised credential, or None"""
    for header in header_values:
        for segment in header.split(","):
            segment = segment.strip()
            for scheme, pattern in _SCHEMES:
                match = pattern.match(segment)
                if match:
                    return scheme, match.group(1).strip()
    return None


def validate_not_expired(token: AccessToken, now: datetime) -> None:
    """Raise ExpiredCredentialError if ``token`` expired before ``now``.

    Compared at whole seconds; a token expiring in the current second is
    still valid.
    """
    if token.expiry_date is None:
        return
    if to_seconds(token.expiry_date) < to_seconds(now):
        raise ExpiredCredentialError()


class CredentialExtractor:
    """Resolves an Authorization header to a valid AccessToken record"""

    def __init__(
        self,
        settings: Settings,
        access_tokens: AccessTokenStore,
        hooks: Optional[TokenHooks] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings
        self.access_tokens = access_tokens
        self.hooks = hooks or TokenHooks()
        self.clock = clock or Clock()

    def extract(self, header_values: Iterable[str]) -> AccessToken:
        credential = find_credential(header_values)
        if credential is None:
            raise MissingCredentialError()

        scheme, value = credential
        if scheme == BEARER:
            token = self._lookup(value)
        else:
            token = self._resolve_signed(value)

        validate_not_expired(token, self.clock.now())
        return token

    def rewrite_header(self, header_values: Iterable[str]) -> Optional[str]:
        """Best-effort ``Bearer <accessToken>`` form of the caller's credential.

        Returns None when the header cannot be resolved; errors are logged and
        dropped because the caller only normalises headers here.
        """
        try:
            token = self.extract(header_values)
        except Exception as exc:
            logger.debug(f"Authorization header left unchanged: {exc}")
            return None
        return f"Bearer {token.access_token}"

    def _lookup(self, access_token: str) -> AccessToken:
        token = self.access_tokens.get_by_value(access_token)
        if token is None or not token.enabled:
            raise InvalidCredentialError()
        return token

    def _resolve_signed(self, signed: str) -> AccessToken:
        constraints: List[Constraint] = []
        self.hooks.run_before_verify(constraints)

        try:
            claims = decode_token(
                signed,
                self.settings.JWT_SECRET_KEY,
                constraints,
                now=self.clock.now(),
                algorithm=self.settings.JWT_ALGORITHM,
            )
        except MalformedTokenError:
            raise InvalidCredentialError("Invalid JWT", code=INVALID)
        except SignatureError as exc:
            logger.info(
                f"Rejected JWT: {', '.join(exc.violations)}",
                extra={"action": "verify_jwt", "kind": exc.kind},
            )
            raise InvalidCredentialError(errors=exc.errors)

        access_token = claims.get("accessToken")
        if not isinstance(access_token, str) or not access_token:
            raise InvalidCredentialError("Invalid JWT", code=INVALID)
        return self._lookup(access_token)
