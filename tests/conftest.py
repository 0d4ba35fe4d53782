"""Pytest configuration and fixtures"""
import os

# Point the app at the test database before gqlauth reads its settings
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["JWT_SECRET_KEY"] = "s3cret"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import datetime, timezone  # noqa: E402
from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from gqlauth.config import Settings  # noqa: E402
from gqlauth.database import Base, SessionLocal, engine, get_db  # noqa: E402
from gqlauth.main import app  # noqa: E402
from gqlauth.models import GqlSchema, User, UserGroup  # noqa: E402
from gqlauth.repositories import (  # noqa: E402
    SqlAccessTokenStore,
    SqlRefreshTokenStore,
    SqlSchemaRegistry,
    SqlUserDirectory,
)
from gqlauth.services.token_service import TokenLifecycleService  # noqa: E402
from gqlauth.utils.auth import hash_password  # noqa: E402
from gqlauth.utils.clock import FrozenClock  # noqa: E402
from gqlauth.utils.jwt_utils import TokenHooks  # noqa: E402

USER_PASSWORD = "correct horse battery staple"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def test_settings() -> Settings:
    """Token settings: 1 hour access tokens, 30 day refresh tokens"""
    return Settings(
        _env_file=None,
        JWT_SECRET_KEY="s3cret",
        JWT_ISSUER="gqlauth-test",
        JWT_EXPIRE_SECONDS=3600,
        JWT_REFRESH_EXPIRE_SECONDS=30 * 24 * 3600,
        SAME_SITE_POLICY="Lax",
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def hooks() -> TokenHooks:
    return TokenHooks()


@pytest.fixture
def schema(db: Session) -> GqlSchema:
    schema = GqlSchema(name="Public API")
    db.add(schema)
    db.commit()
    db.refresh(schema)
    return schema


@pytest.fixture
def user_password() -> str:
    return USER_PASSWORD


@pytest.fixture
def user(db: Session) -> User:
    """User 42, member of the Editors group"""
    user = User(
        id=42,
        username="alice",
        email="a@b.com",
        first_name="Alice",
        last_name="Doe",
        password_hash=hash_password(USER_PASSWORD),
        admin=False,
        groups=[UserGroup(name="Editors", handle="editors")],
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def service(db: Session, test_settings: Settings, clock: FrozenClock, hooks: TokenHooks) -> TokenLifecycleService:
    return TokenLifecycleService(
        test_settings,
        access_tokens=SqlAccessTokenStore(db),
        refresh_tokens=SqlRefreshTokenStore(db),
        users=SqlUserDirectory(db),
        schemas=SqlSchemaRegistry(db),
        hooks=hooks,
        clock=clock,
    )
