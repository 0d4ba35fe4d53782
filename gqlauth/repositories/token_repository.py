"""SQLAlchemy-backed token stores"""
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gqlauth.errors import PersistenceError
from gqlauth.models.access_token import AccessToken
from gqlauth.models.refresh_token import RefreshToken
from gqlauth.repositories.base import AccessTokenStore, RefreshTokenStore
from gqlauth.utils.clock import naive_utc
from gqlauth.utils.logger import logger

USER_TOKEN_PATTERN = "user-%"


def _required(errors: Dict[str, List[str]], field: str, value: object, label: str) -> None:
    if value is None or value == "":
        errors.setdefault(field, []).append(f"{label} cannot be blank.")


def _sweep_cutoff(now: datetime) -> datetime:
    """Start of the second containing ``now``"""
    return naive_utc(now).replace(microsecond=0)


def _save(db: Session, record: object, unique_field: str, unique_label: str) -> None:
    """Add and commit ``record``, translating database failures"""
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except IntegrityError as exc:
        db.rollback()
        logger.warning(f"Integrity error saving {type(record).__name__}: {exc.orig}")
        raise PersistenceError(errors={unique_field: [f"{unique_label} has already been taken."]})
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to save {type(record).__name__}", exc_info=True)
        raise PersistenceError(errors={"database": [str(exc)]})


class SqlAccessTokenStore(AccessTokenStore):
    """Access tokens in the ``gql_tokens`` table"""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, token_id: int) -> Optional[AccessToken]:
        return self.db.query(AccessToken).filter(AccessToken.id == token_id).first()

    def get_by_value(self, access_token: str) -> Optional[AccessToken]:
        return self.db.query(AccessToken).filter(AccessToken.access_token == access_token).first()

    def put(self, token: AccessToken) -> AccessToken:
        errors: Dict[str, List[str]] = {}
        _required(errors, "name", token.name, "Name")
        _required(errors, "accessToken", token.access_token, "Access token")
        if errors:
            raise PersistenceError(errors=errors)
        if token.expiry_date is not None:
            token.expiry_date = naive_utc(token.expiry_date)
        _save(self.db, token, "accessToken", "Access token")
        return token

    def delete_by_id(self, token_id: int) -> int:
        deleted = self.db.query(AccessToken).filter(AccessToken.id == token_id).delete(
            synchronize_session="fetch"
        )
        self.db.commit()
        return deleted

    def delete_expired(self, now: datetime) -> int:
        deleted = (
            self.db.query(AccessToken)
            .filter(
                AccessToken.expiry_date.isnot(None),
                AccessToken.expiry_date < _sweep_cutoff(now),
                AccessToken.name.like(USER_TOKEN_PATTERN),
            )
            .delete(synchronize_session="fetch")
        )
        self.db.commit()
        return deleted

    def find_by_name_pattern(self, pattern: str) -> List[AccessToken]:
        return (
            self.db.query(AccessToken)
            .filter(AccessToken.name.like(pattern))
            .order_by(AccessToken.id)
            .all()
        )


class SqlRefreshTokenStore(RefreshTokenStore):
    """Refresh tokens in the ``refresh_tokens`` table"""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_token(self, token: str) -> Optional[RefreshToken]:
        return self.db.query(RefreshToken).filter(RefreshToken.token == token).first()

    def put(self, token: RefreshToken) -> RefreshToken:
        errors: Dict[str, List[str]] = {}
        _required(errors, "token", token.token, "Token")
        _required(errors, "userId", token.user_id, "User ID")
        _required(errors, "expiryDate", token.expiry_date, "Expiry date")
        if errors:
            raise PersistenceError(code="INVALID", errors=errors)
        token.expiry_date = naive_utc(token.expiry_date)
        _save(self.db, token, "token", "Token")
        return token

    def delete_by_id(self, token_id: int) -> int:
        deleted = self.db.query(RefreshToken).filter(RefreshToken.id == token_id).delete(
            synchronize_session="fetch"
        )
        self.db.commit()
        return deleted

    def delete_by_token(self, token: str) -> int:
        # Single DELETE statement; the rowcount decides who redeemed the token
        deleted = self.db.query(RefreshToken).filter(RefreshToken.token == token).delete(
            synchronize_session="fetch"
        )
        self.db.commit()
        return deleted

    def delete_expired(self, now: datetime) -> int:
        deleted = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.expiry_date < _sweep_cutoff(now))
            .delete(synchronize_session="fetch")
        )
        self.db.commit()
        return deleted
