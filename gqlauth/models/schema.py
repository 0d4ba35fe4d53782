"""GqlSchema model - named permission scopes"""
from sqlalchemy import Column, Integer, String

from gqlauth.database import Base


class GqlSchema(Base):
    """A permission scope tokens are issued against"""

    __tablename__ = "gql_schemas"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
