"""JWT utilities: HS256 signing, verification and extension hooks"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

from jose import JWTError, jws, jwt
from jose.exceptions import JWSError

from gqlauth.errors import ConfigError, MalformedTokenError, SignatureError
from gqlauth.utils.clock import to_seconds
from gqlauth.utils.logger import logger

DEFAULT_ALGORITHM = "HS256"

# Claims set by the token service; hooks may not replace them
MANDATORY_CLAIMS = ("iss", "iat", "exp", "sub", "accessToken")


# ---------------------------------------------------------------------------
# Claims builder
# ---------------------------------------------------------------------------

class ClaimsBuilder:
    """Mutable claim set handed to ``before_sign`` hooks.

    The registered claims and the embedded ``accessToken`` are fixed at
    construction; everything else can be added or overridden with
    :meth:`with_claim`.
    """

    def __init__(
        self,
        issuer: str,
        issued_at: datetime,
        expires_at: datetime,
        subject: str,
        access_token: str,
    ) -> None:
        self._mandatory: Dict[str, Any] = {
            "iss": issuer,
            "iat": to_seconds(issued_at),
            "exp": to_seconds(expires_at),
            "sub": subject,
            "accessToken": access_token,
        }
        self._extra: Dict[str, Any] = {}

    def with_claim(self, name: str, value: Any) -> "ClaimsBuilder":
        if name in MANDATORY_CLAIMS:
            raise ValueError(f"Claim '{name}' is reserved and cannot be overridden")
        self._extra[name] = value
        return self

    def get(self, name: str, default: Any = None) -> Any:
        if name in self._mandatory:
            return self._mandatory[name]
        return self._extra.get(name, default)

    def claims(self) -> Dict[str, Any]:
        return {**self._extra, **self._mandatory}


# ---------------------------------------------------------------------------
# Validation constraints
# ---------------------------------------------------------------------------

class Constraint(NamedTuple):
    """A named predicate over decoded claims; False means violated."""
    name: str
    check: Callable[[Dict[str, Any]], bool]


def issued_by(*issuers: str) -> Constraint:
    """Constraint requiring the ``iss`` claim to be one of ``issuers``"""
    return Constraint("issued_by", lambda claims: claims.get("iss") in issuers)


# ---------------------------------------------------------------------------
# Extension hooks
# ---------------------------------------------------------------------------

BeforeSignHook = Callable[[ClaimsBuilder, Any], None]
BeforeVerifyHook = Callable[[List[Constraint]], None]


class TokenHooks:
    """Explicit extension points for signing and verification.

    ``before_sign`` hooks receive the :class:`ClaimsBuilder` and the user the
    token is issued for. ``before_verify`` hooks receive the mutable list of
    constraints evaluated by :func:`decode_token`.
    """

    def __init__(self) -> None:
        self._before_sign: List[BeforeSignHook] = []
        self._before_verify: List[BeforeVerifyHook] = []

    def before_sign(self, hook: BeforeSignHook) -> BeforeSignHook:
        self._before_sign.append(hook)
        return hook

    def before_verify(self, hook: BeforeVerifyHook) -> BeforeVerifyHook:
        self._before_verify.append(hook)
        return hook

    def run_before_sign(self, builder: ClaimsBuilder, user: Any) -> None:
        for hook in self._before_sign:
            hook(builder, user)

    def run_before_verify(self, constraints: List[Constraint]) -> None:
        for hook in self._before_verify:
            hook(constraints)


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------

def encode_token(
    claims: Dict[str, Any],
    secret_key: Optional[str],
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Sign ``claims`` with the symmetric ``secret_key``.

    Raises:
        ConfigError: if no secret key is configured.
    """
    if not secret_key:
        raise ConfigError()
    return jwt.encode(claims, secret_key, algorithm=algorithm)


def decode_token(
    token: str,
    secret_key: Optional[str],
    constraints: Iterable[Constraint] = (),
    now: Optional[datetime] = None,
    algorithm: str = DEFAULT_ALGORITHM,
) -> Dict[str, Any]:
    """Parse and verify a signed token and return its claims.

    Checks, in one pass:
    1. ``signed_with``: HMAC signature matches ``secret_key``
    2. ``valid_at``: the ``exp`` claim is not before ``now``
    3. every extra constraint supplied by the caller

    Raises:
        ConfigError: if no secret key is configured.
        MalformedTokenError: if the string is not a parseable JWT.
        SignatureError: listing every violated constraint name.
    """
    if not secret_key:
        raise ConfigError()

    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
        logger.debug(f"JWT parse failed: {exc}")
        raise MalformedTokenError()

    violations: List[str] = []

    try:
        jws.verify(token, secret_key, algorithms=[algorithm])
    except JWSError as exc:
        logger.debug(f"JWT signature check failed: {exc}")
        violations.append("signed_with")

    exp = claims.get("exp")
    if now is None:
        now = datetime.now(timezone.utc)
    if exp is not None:
        try:
            if int(exp) < to_seconds(now):
                violations.append("valid_at")
        except (TypeError, ValueError):
            violations.append("valid_at")

    for constraint in constraints:
        if not constraint.check(claims):
            violations.append(constraint.name)

    if violations:
        raise SignatureError(violations)

    return claims
