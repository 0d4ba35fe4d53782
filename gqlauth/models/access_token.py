"""AccessToken model - opaque server-tracked API tokens"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from gqlauth.database import Base
from gqlauth.utils.clock import utcnow


class AccessToken(Base):
    """An opaque access token.

    Tokens issued to users are named ``user-{user_id}-{microtime}``. The user id
    segment is parsed back out to identify the caller, so user ids must not
    contain ``-``. Tokens with other names (service tokens) share the table but
    are never touched by the expiry sweep.
    """

    __tablename__ = "gql_tokens"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    access_token = Column(String(255), unique=True, nullable=False, index=True)
    enabled = Column(Boolean, default=True, nullable=False)
    schema_id = Column(Integer, ForeignKey("gql_schemas.id", ondelete="SET NULL"), nullable=True)
    expiry_date = Column(DateTime, nullable=True, index=True)  # naive UTC; null = never expires
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    schema = relationship("GqlSchema")
