"""Pydantic schemas for request/response validation"""
from gqlauth.schemas.auth import (
    AuthenticateRequest,
    AuthPayload,
    RefreshRequest,
    RevokeResponse,
    UserResponse,
)

__all__ = [
    "AuthenticateRequest",
    "AuthPayload",
    "RefreshRequest",
    "RevokeResponse",
    "UserResponse",
]
