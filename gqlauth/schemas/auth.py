"""Authentication request/response schemas"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from gqlauth.models.user import User
from gqlauth.services.token_service import IssuedTokens


class AuthenticateRequest(BaseModel):
    """Schema for logging in with a username/email and password"""

    email: str = Field(..., min_length=1, max_length=255, description="Email address or username")
    password: str = Field(..., min_length=1, description="Account password")


class RefreshRequest(BaseModel):
    """Explicit refresh token; the gql_refreshToken cookie takes precedence"""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[str] = Field(None, alias="refreshToken")


class UserResponse(BaseModel):
    """Identity fields returned alongside tokens"""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    username: str
    email: str
    full_name: str = Field(..., alias="fullName")
    admin: bool
    groups: List[str]

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            admin=bool(user.admin),
            groups=[group.name for group in user.groups],
        )


class AuthPayload(BaseModel):
    """Tokens issued by login or refresh"""

    model_config = ConfigDict(populate_by_name=True)

    user: UserResponse
    schema_name: str = Field(..., alias="schema")
    jwt: str
    jwt_expires_at: int = Field(..., alias="jwtExpiresAt", description="Milliseconds since epoch")
    refresh_token: str = Field(..., alias="refreshToken")
    refresh_token_expires_at: int = Field(..., alias="refreshTokenExpiresAt", description="Milliseconds since epoch")

    @classmethod
    def from_issued(cls, issued: IssuedTokens) -> "AuthPayload":
        return cls(
            user=UserResponse.from_user(issued.user),
            schema_name=issued.schema_name,
            jwt=issued.jwt,
            jwt_expires_at=issued.jwt_expires_at,
            refresh_token=issued.refresh_token,
            refresh_token_expires_at=issued.refresh_token_expires_at,
        )


class RevokeResponse(BaseModel):
    success: bool
    revoked: int = 1
