"""RefreshToken model - single-use refresh tokens"""
from sqlalchemy import Column, DateTime, Integer, String

from gqlauth.database import Base
from gqlauth.utils.clock import utcnow


class RefreshToken(Base):
    """A refresh token, deleted when redeemed or once expired.

    user_id and schema_id are plain integers so a token can outlive (and be
    rejected after) deletion of the user or schema it was issued for.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(255), unique=True, nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    schema_id = Column(Integer, nullable=True)
    expiry_date = Column(DateTime, nullable=False, index=True)  # naive UTC
    created_at = Column(DateTime, default=utcnow, nullable=False)
