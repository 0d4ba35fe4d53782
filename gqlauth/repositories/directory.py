"""User Directory and Schema Registry collaborators.

The token engine reads users and schemas through these interfaces. The only
write is the last-login stamp made when a user authenticates.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from gqlauth.models.schema import GqlSchema
from gqlauth.models.user import User
from gqlauth.utils.auth import verify_password
from gqlauth.utils.clock import naive_utc


class UserDirectory(ABC):
    @abstractmethod
    def get_user_by_id(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_username_or_email(self, username_or_email: str) -> Optional[User]:
        ...

    @abstractmethod
    def verify_password(self, user: User, password: str) -> bool:
        ...

    @abstractmethod
    def record_login(self, user: User, when: datetime) -> None:
        """Stamp ``user`` with the time of a successful login"""


class SchemaRegistry(ABC):
    @abstractmethod
    def get_schema(self, schema_id: int) -> Optional[GqlSchema]:
        ...


class SqlUserDirectory(UserDirectory):
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_username_or_email(self, username_or_email: str) -> Optional[User]:
        value = username_or_email.strip().lower()
        return (
            self.db.query(User)
            .filter(or_(func.lower(User.username) == value, func.lower(User.email) == value))
            .first()
        )

    def verify_password(self, user: User, password: str) -> bool:
        return verify_password(password, user.password_hash)

    def record_login(self, user: User, when: datetime) -> None:
        user.last_login_date = naive_utc(when)
        self.db.commit()


class SqlSchemaRegistry(SchemaRegistry):
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_schema(self, schema_id: int) -> Optional[GqlSchema]:
        return self.db.query(GqlSchema).filter(GqlSchema.id == schema_id).first()
