from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stockledger.core.errors import Conflict, InvalidInput, StorageFault, Unauthenticated
from stockledger.core.security import hash_password, verify_password
from stockledger.models.user import User
from stockledger.schemas.auth import Identity


logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 64
PASSWORD_MIN_LENGTH = 6


class AccountService:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def register(self, username: str, password: str) -> Identity:
        username = (username or "").strip()
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise InvalidInput(
                f"username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
            )
        if len(password or "") < PASSWORD_MIN_LENGTH:
            raise InvalidInput(f"password must be at least {PASSWORD_MIN_LENGTH} characters")

        user = User(username=username, hashed_password=hash_password(password))
        try:
            with self._session_factory() as db, db.begin():
                db.add(user)
                db.flush()
                identity = Identity(id=user.id, username=user.username)
        except IntegrityError as exc:
            raise Conflict("username already taken") from exc
        except SQLAlchemyError as exc:
            logger.error("registration failed for %s", username, exc_info=True)
            raise StorageFault("storage unavailable") from exc

        logger.info("registered user_id=%s username=%s", identity.id, identity.username)
        return identity

    def authenticate(self, username: str, password: str) -> Identity:
        username = (username or "").strip()
        try:
            with self._session_factory() as db:
                user = db.scalar(select(User).where(User.username == username))
        except SQLAlchemyError as exc:
            raise StorageFault("storage unavailable") from exc

        if not user or not verify_password(password or "", user.hashed_password):
            raise Unauthenticated("invalid credentials")
        return Identity(id=user.id, username=user.username)
