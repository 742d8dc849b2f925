import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ledger import ValidationError
from models import User

logger = logging.getLogger(__name__)


class DuplicateEmailError(ValidationError):
    pass


def normalize_email(email) -> str:
    if not isinstance(email, str):
        return ""
    return email.strip().lower()


def register_user(session, name, email, password) -> User:
    if not all(isinstance(value, str) for value in (name, email, password)):
        raise ValidationError("Name, email and password are required")
    name = name.strip()
    email = normalize_email(email)
    if not name or not email or not password:
        raise ValidationError("Name, email and password are required")

    if session.query(User).filter_by(email=email).first():
        logger.info("Registration refused, email already on file: %s", email)
        raise DuplicateEmailError("User already exists")

    user = User(name=name, email=email)
    user.set_password(password)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # lost a race against a concurrent registration for the same email
        session.rollback()
        raise DuplicateEmailError("User already exists")
    except SQLAlchemyError:
        session.rollback()
        raise
    logger.info("Registered user id=%s", user.id)
    return user


def authenticate(session, email, password) -> Optional[User]:
    user = session.query(User).filter_by(email=normalize_email(email)).first()
    if user and isinstance(password, str) and password and user.check_password(password):
        return user
    return None
