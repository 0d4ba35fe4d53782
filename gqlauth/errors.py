"""Token lifecycle errors.

Every failure raised by the token engine is a :class:`TokenAuthError`. Each
error carries:

- ``kind``: the error name, e.g. ``InvalidCredentialError``
- ``category``: coarse class the HTTP layer maps to a status code
- ``code``: ``INVALID`` (caller sent something unusable) or ``FORBIDDEN``
  (caller sent something recognisable that was rejected)
- ``errors``: field name -> list of messages, used for storage validation detail
"""
from enum import Enum
from typing import Dict, List, Optional

INVALID = "INVALID"
FORBIDDEN = "FORBIDDEN"


class ErrorCategory(str, Enum):
    UNAUTHENTICATED = "unauthenticated"   # client fault, not authenticated
    BAD_INPUT = "bad_input"               # client fault, bad input
    MISCONFIGURED = "misconfigured"       # server misconfiguration
    STORAGE = "storage"                   # persistence failure


class TokenAuthError(Exception):
    """Base class for token lifecycle failures"""

    category: ErrorCategory = ErrorCategory.UNAUTHENTICATED
    default_code: str = FORBIDDEN
    default_message: str = "Authentication failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        errors: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.errors: Dict[str, List[str]] = errors or {}
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, object]:
        return {
            "error": self.kind,
            "code": self.code,
            "message": self.message,
            "errors": self.errors,
        }


class MissingCredentialError(TokenAuthError):
    default_message = "Invalid Authorization Header"


class InvalidCredentialError(TokenAuthError):
    default_message = "Invalid Authorization Header"


class ExpiredCredentialError(TokenAuthError):
    default_message = "Invalid Authorization Header"


class MalformedTokenError(TokenAuthError):
    default_code = INVALID
    default_message = "Token could not be parsed"


class SignatureError(TokenAuthError):
    """Raised when one or more validation constraints fail.

    ``violations`` lists the names of every constraint that failed in the same
    assertion pass.
    """

    default_message = "Token failed validation"

    def __init__(self, violations: List[str], message: Optional[str] = None) -> None:
        self.violations = list(violations)
        super().__init__(
            message or f"{self.default_message}: {', '.join(self.violations)}",
            errors={"constraints": self.violations},
        )


class UserNotFoundError(TokenAuthError):
    category = ErrorCategory.BAD_INPUT
    default_code = INVALID
    default_message = "We couldn't find any matching users"


class InvalidSchemaError(TokenAuthError):
    category = ErrorCategory.BAD_INPUT
    default_code = INVALID
    default_message = "No schema has been created/selected"


class TokenNotFoundError(TokenAuthError):
    category = ErrorCategory.BAD_INPUT
    default_code = INVALID
    default_message = "We couldn't find any matching tokens"


class ConfigError(TokenAuthError):
    category = ErrorCategory.MISCONFIGURED
    default_code = INVALID
    default_message = "Invalid JWT Secret Key"


class PersistenceError(TokenAuthError):
    category = ErrorCategory.STORAGE
    default_message = "Could not save token"
