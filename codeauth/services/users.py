# codeauth/services/users.py

import logging
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from codeauth.core.errors import (
    AuthError,
    NotFoundError,
    UnverifiedError,
    UserCreationError,
    ValidationError,
    VerificationError,
)
from codeauth.core.security import TokenService, hash_password, require_token_service, verify_password
from codeauth.models.user import User
from codeauth.services.verification import VerificationCodeStore, parse_code

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def create_user(db: Session, name: str, email: str, password_hash: str) -> User:
    u = User(name=name, email=email, password_hash=password_hash, is_verified=True)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def register_user(
    db: Session,
    store: VerificationCodeStore,
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    verification_code: Union[int, str, None] = None,
    rounds: int = 10,
) -> User:
    """Create a verified account for an email that has a pending code.

    Only the presence of a live code is required. When the client also
    sends ``verification_code`` it has to match. The entry is taken out
    of the store before the user is written and put back if the write
    fails, so two concurrent registrations cannot both use it.
    """
    if not name or not email or not password:
        raise ValidationError()

    entry = store.pop(email)
    if entry is None:
        raise VerificationError()

    if verification_code is not None and parse_code(verification_code) != entry.code:
        store.restore(entry)
        raise VerificationError("Código de verificação inválido ou expirado")

    try:
        user = create_user(db, name, email, hash_password(password, rounds=rounds))
    except (SQLAlchemyError, ValueError) as e:
        db.rollback()
        store.restore(entry)
        logger.error("user creation failed for %s: %s", email, type(e).__name__)
        raise UserCreationError()

    logger.info("user %s registered (id=%s)", email, user.id)
    return user


def login_user(db: Session, tokens: Optional[TokenService], email: Optional[str], password: Optional[str]) -> str:
    if not email or not password:
        raise ValidationError("Email e senha são obrigatórios")

    user = get_user_by_email(db, email)
    if not user:
        raise NotFoundError()
    if not user.is_verified:
        raise UnverifiedError()
    if not verify_password(password, user.password_hash):
        logger.warning("wrong password for %s", email)
        raise AuthError()

    return require_token_service(tokens).issue(user.id, user.name, user.email)
