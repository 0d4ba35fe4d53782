"""User and UserGroup models"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from gqlauth.database import Base
from gqlauth.utils.clock import utcnow

user_group_members = Table(
    "user_group_members",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", Integer, ForeignKey("user_groups.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """User model - an account that can log in and hold tokens"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)  # bcrypt
    admin = Column(Boolean, default=False, nullable=False)
    last_login_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    groups = relationship(
        "UserGroup",
        secondary=user_group_members,
        order_by="UserGroup.id",
        back_populates="users",
    )

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts)


class UserGroup(Base):
    """UserGroup model - group membership drives claims and schema choice"""

    __tablename__ = "user_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    handle = Column(String(255), unique=True, nullable=False)

    users = relationship("User", secondary=user_group_members, back_populates="groups")
