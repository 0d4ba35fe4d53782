"""Tests for the SQL token stores and user directory"""
from datetime import datetime, timedelta

import pytest

from gqlauth.errors import PersistenceError
from gqlauth.models import AccessToken, GqlSchema, RefreshToken
from gqlauth.repositories import (
    SqlAccessTokenStore,
    SqlRefreshTokenStore,
    SqlSchemaRegistry,
    SqlUserDirectory,
)


@pytest.fixture
def access_tokens(db):
    return SqlAccessTokenStore(db)


@pytest.fixture
def refresh_tokens(db):
    return SqlRefreshTokenStore(db)


def test_access_token_round_trip(access_tokens, schema, clock):
    token = access_tokens.put(
        AccessToken(name="user-42-1", access_token="value", schema_id=schema.id, expiry_date=clock.now())
    )

    assert token.id is not None
    assert token.enabled is True
    assert token.expiry_date.tzinfo is None
    assert access_tokens.get(token.id).access_token == "value"
    assert access_tokens.get_by_value("value").id == token.id
    assert access_tokens.get_by_value("missing") is None


def test_access_token_requires_fields(access_tokens):
    with pytest.raises(PersistenceError) as exc_info:
        access_tokens.put(AccessToken(name="", access_token=None))
    assert exc_info.value.errors == {
        "name": ["Name cannot be blank."],
        "accessToken": ["Access token cannot be blank."],
    }


def test_access_token_value_is_unique(access_tokens):
    access_tokens.put(AccessToken(name="user-1-1", access_token="dup"))
    with pytest.raises(PersistenceError) as exc_info:
        access_tokens.put(AccessToken(name="user-2-1", access_token="dup"))
    assert exc_info.value.errors == {"accessToken": ["Access token has already been taken."]}

    # Session is usable after the rollback
    assert access_tokens.get_by_value("dup").name == "user-1-1"


def test_access_token_delete_by_id(access_tokens):
    token_id = access_tokens.put(AccessToken(name="user-1-1", access_token="gone")).id
    assert access_tokens.delete_by_id(token_id) == 1
    assert access_tokens.delete_by_id(token_id) == 0
    assert access_tokens.get(token_id) is None


def test_access_token_delete_expired_boundary(access_tokens, clock):
    """Test that a token expiring exactly now is kept and one a second older is swept"""
    access_tokens.put(
        AccessToken(name="user-1-1", access_token="before", expiry_date=clock.now() - timedelta(seconds=1))
    )
    access_tokens.put(AccessToken(name="user-1-2", access_token="now", expiry_date=clock.now()))

    assert access_tokens.delete_expired(clock.now()) == 1
    assert access_tokens.get_by_value("before") is None
    assert access_tokens.get_by_value("now") is not None


def test_access_token_delete_expired_ignores_sub_second(access_tokens, clock):
    """Test that the sweep keeps a token expiring earlier in the current second"""
    access_tokens.put(
        AccessToken(name="user-1-1", access_token="v", expiry_date=clock.now() + timedelta(milliseconds=300))
    )
    clock.advance(milliseconds=600)

    assert access_tokens.delete_expired(clock.now()) == 0
    assert access_tokens.get_by_value("v") is not None

    clock.advance(milliseconds=400)
    assert access_tokens.delete_expired(clock.now()) == 1


def test_refresh_token_requires_fields(refresh_tokens):
    with pytest.raises(PersistenceError) as exc_info:
        refresh_tokens.put(RefreshToken(token="", user_id=None, expiry_date=None))
    assert exc_info.value.code == "INVALID"
    assert set(exc_info.value.errors) == {"token", "userId", "expiryDate"}


def test_refresh_token_delete_by_token_once(refresh_tokens, clock):
    refresh_tokens.put(RefreshToken(token="once", user_id=42, expiry_date=clock.now() + timedelta(days=1)))

    assert refresh_tokens.delete_by_token("once") == 1
    assert refresh_tokens.delete_by_token("once") == 0
    assert refresh_tokens.get_by_token("once") is None


def test_refresh_token_delete_expired(refresh_tokens, clock):
    refresh_tokens.put(RefreshToken(token="old", user_id=42, expiry_date=clock.now() - timedelta(days=1)))
    refresh_tokens.put(RefreshToken(token="new", user_id=42, expiry_date=clock.now() + timedelta(days=1)))

    assert refresh_tokens.delete_expired(clock.now()) == 1
    assert refresh_tokens.get_by_token("new") is not None


def test_refresh_token_delete_expired_ignores_sub_second(refresh_tokens, clock):
    refresh_tokens.put(
        RefreshToken(token="v", user_id=42, expiry_date=clock.now() + timedelta(milliseconds=300))
    )
    clock.advance(milliseconds=600)

    assert refresh_tokens.delete_expired(clock.now()) == 0
    clock.advance(seconds=1)
    assert refresh_tokens.delete_expired(clock.now()) == 1


def test_delete_by_token_detaches_loaded_record(refresh_tokens, clock):
    """Test that a record loaded before redemption stays readable afterwards"""
    refresh_tokens.put(RefreshToken(token="held", user_id=42, expiry_date=clock.now() + timedelta(days=1)))
    record = refresh_tokens.get_by_token("held")

    assert refresh_tokens.delete_by_token("held") == 1
    assert record.user_id == 42


def test_user_directory_lookup(db, user):
    users = SqlUserDirectory(db)

    assert users.get_user_by_id(42).username == "alice"
    assert users.get_user_by_username_or_email("ALICE").id == 42
    assert users.get_user_by_username_or_email(" a@b.com ").id == 42
    assert users.get_user_by_username_or_email("bob") is None


def test_user_directory_verify_password(db, user, user_password):
    users = SqlUserDirectory(db)
    assert users.verify_password(user, user_password) is True
    assert users.verify_password(user, "wrong") is False


def test_schema_registry(db, schema):
    schemas = SqlSchemaRegistry(db)
    assert schemas.get_schema(schema.id).name == "Public API"
    assert schemas.get_schema(999) is None
    assert set(GqlSchema.__table__.columns.keys()) == {"id", "name"}


def test_user_directory_record_login(db, user, clock):
    users = SqlUserDirectory(db)
    users.record_login(user, clock.now())

    db.expire_all()
    assert users.get_user_by_id(42).last_login_date == datetime(2026, 3, 1, 12, 0, 0)
