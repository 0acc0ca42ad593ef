"""Account creation and credential checks. Passwords are stored as Argon2id hashes only."""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vaultcrypto import hash_password, verify_password

from ..models import User

logger = logging.getLogger(__name__)


class UserAlreadyExists(Exception):
    pass


class InvalidCredentials(Exception):
    pass


def get_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def create_user(db: Session, username: str, password: str) -> User:
    if get_by_username(db, username) is not None:
        raise UserAlreadyExists(username)
    user = User(username=username, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise UserAlreadyExists(username) from None
    db.refresh(user)
    logger.info("Created user %s (id=%d)", username, user.id)
    return user


def verify_user(db: Session, username: str, password: str) -> User:
    user = get_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentials(username)
    return user
