"""Database models"""
from gqlauth.models.access_token import AccessToken
from gqlauth.models.refresh_token import RefreshToken
from gqlauth.models.schema import GqlSchema
from gqlauth.models.user import User, UserGroup, user_group_members

__all__ = ["AccessToken", "RefreshToken", "GqlSchema", "User", "UserGroup", "user_group_members"]
