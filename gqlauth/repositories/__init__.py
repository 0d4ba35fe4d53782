"""Token stores and external collaborator interfaces"""
from gqlauth.repositories.base import AccessTokenStore, RefreshTokenStore
from gqlauth.repositories.directory import (
    SchemaRegistry,
    SqlSchemaRegistry,
    SqlUserDirectory,
    UserDirectory,
)
from gqlauth.repositories.token_repository import SqlAccessTokenStore, SqlRefreshTokenStore

__all__ = [
    "AccessTokenStore",
    "RefreshTokenStore",
    "SchemaRegistry",
    "SqlAccessTokenStore",
    "SqlRefreshTokenStore",
    "SqlSchemaRegistry",
    "SqlUserDirectory",
    "UserDirectory",
]
