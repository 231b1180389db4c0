from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Request
from jose import jwt, JWTError

from codeauth.core.config import Settings
from codeauth.core.errors import ConfigError, TokenError

logger = logging.getLogger(__name__)


BCRYPT_MAX_BYTES = 72


def _password_bytes(plain: str) -> bytes:
    # bcrypt 는 앞 72바이트만 사용. bcrypt 5 는 초과 시 ValueError 를 내므로 직접 자른다
    return plain.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # bcrypt 형식이 아닌 해시
        logger.warning("password check failed: stored hash is not bcrypt")
        return False


class TokenService:
    """Signs and verifies the session JWT handed out by ``/login``.

    The secret is fixed when the service is built; handlers receive the
    instance through ``get_token_service`` instead of reading settings.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires: timedelta = timedelta(hours=1)):
        if not secret:
            raise ConfigError()
        self._secret = secret
        self.algorithm = algorithm
        self.expires = expires

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["TokenService"]:
        if not settings.JWT_SECRET:
            logger.error("JWT_SECRET is not configured; login and token verification are disabled")
            return None
        return cls(
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALG,
            expires=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    def issue(self, user_id: int, name: str, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "userId": user_id,
            "name": name,
            "email": email,
            "iat": now,
            "exp": now + self.expires,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except JWTError as e:
            # ExpiredSignatureError 도 JWTError 의 하위 클래스
            logger.warning("token rejected: %s", type(e).__name__)
            raise TokenError()
        user_id = payload.get("userId")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            logger.warning("token rejected: missing or malformed userId claim")
            raise TokenError()
        for claim in ("name", "email"):
            if not isinstance(payload.get(claim), str):
                logger.warning("token rejected: missing %s claim", claim)
                raise TokenError()
        return payload


def get_token_service(request: Request) -> Optional[TokenService]:
    # None 이면 JWT_SECRET 미설정. 사용하는 쪽에서 ConfigError 로 처리
    return getattr(request.app.state, "token_service", None)


def require_token_service(service: Optional[TokenService]) -> TokenService:
    if service is None:
        raise ConfigError()
    return service


def get_password_rounds(request: Request) -> int:
    return request.app.state.settings.BCRYPT_ROUNDS
