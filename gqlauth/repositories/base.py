"""Repository interfaces the token engine depends on.

The lifecycle service only talks to these abstract stores; the SQLAlchemy
implementations live beside them. Stores are the single source of truth for
token state: nothing is cached between calls.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from gqlauth.models.access_token import AccessToken
from gqlauth.models.refresh_token import RefreshToken


class AccessTokenStore(ABC):
    """Persistence for opaque access tokens"""

    @abstractmethod
    def get(self, token_id: int) -> Optional[AccessToken]:
        ...

    @abstractmethod
    def get_by_value(self, access_token: str) -> Optional[AccessToken]:
        """Look up a token by its secret value"""

    @abstractmethod
    def put(self, token: AccessToken) -> AccessToken:
        """Insert or update; raises PersistenceError with field messages"""

    @abstractmethod
    def delete_by_id(self, token_id: int) -> int:
        """Delete one token, returning the number of rows removed"""

    @abstractmethod
    def delete_expired(self, now: datetime) -> int:
        """Delete user tokens (``user-*``) that expired before the current second"""

    @abstractmethod
    def find_by_name_pattern(self, pattern: str) -> List[AccessToken]:
        """Return tokens whose name matches a SQL LIKE pattern"""


class RefreshTokenStore(ABC):
    """Persistence for single-use refresh tokens"""

    @abstractmethod
    def get_by_token(self, token: str) -> Optional[RefreshToken]:
        ...

    @abstractmethod
    def put(self, token: RefreshToken) -> RefreshToken:
        """Insert; raises PersistenceError with field messages"""

    @abstractmethod
    def delete_by_id(self, token_id: int) -> int:
        ...

    @abstractmethod
    def delete_by_token(self, token: str) -> int:
        """Compare-and-delete by value.

        Returns the number of rows removed. Two concurrent callers redeeming
        the same value see 1 and 0 respectively.
        """

    @abstractmethod
    def delete_expired(self, now: datetime) -> int:
        """Delete refresh tokens that expired before the current second"""
