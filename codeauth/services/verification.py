# codeauth/services/verification.py
"""
이메일 인증 코드 저장소와 발송/검증 로직.

코드는 프로세스 메모리에만 보관한다. 만료된 코드는 반환되지 않으며,
조회 시 삭제되고 새 코드를 저장할 때마다 한꺼번에 정리된다.
"""
from dataclasses import dataclass
import logging
import secrets
import threading
import time
from typing import Callable, Dict, Optional, Union

from fastapi import Request

from codeauth.core.errors import DeliveryError, InvalidCodeError, ValidationError

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999
DEFAULT_TTL_SECONDS = 10 * 60


@dataclass(frozen=True)
class VerificationEntry:
    email: str
    code: int
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at < now


class VerificationCodeStore:
    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: Dict[str, VerificationEntry] = {}
        self._lock = threading.Lock()

    def put(self, email: str, code: int, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> VerificationEntry:
        now = self._clock()
        entry = VerificationEntry(email=email, code=code, expires_at=now + ttl_seconds)
        with self._lock:
            self._purge(now)
            self._entries[email] = entry
        return entry

    def get(self, email: str) -> Optional[VerificationEntry]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(email)
            if entry is not None and entry.is_expired(now):
                del self._entries[email]
                return None
            return entry

    def pop(self, email: str) -> Optional[VerificationEntry]:
        """Remove and return the live entry for ``email`` in one step."""
        now = self._clock()
        with self._lock:
            entry = self._entries.pop(email, None)
        if entry is None or entry.is_expired(now):
            return None
        return entry

    def restore(self, entry: VerificationEntry) -> bool:
        # 새 코드가 이미 발급됐다면 덮어쓰지 않는다
        with self._lock:
            if entry.email in self._entries:
                return False
            self._entries[entry.email] = entry
            return True

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge(self._clock())

    def _purge(self, now: float) -> int:
        stale = [email for email, entry in self._entries.items() if entry.is_expired(now)]
        for email in stale:
            del self._entries[email]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, email: str) -> bool:
        return self.get(email) is not None


def generate_code() -> int:
    return CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1)


def parse_code(submitted: Union[int, str, None]) -> Optional[int]:
    if submitted is None or isinstance(submitted, bool):
        return None
    try:
        return int(str(submitted).strip())
    except ValueError:
        return None


async def send_verification_code(
    store: VerificationCodeStore,
    mailer,
    email: Optional[str],
    ttl_seconds: float = DEFAULT_TTL_SECONDS,
) -> VerificationEntry:
    if not email:
        raise ValidationError("Email é necessário")

    entry = store.put(email, generate_code(), ttl_seconds)

    # 전송에 실패해도 저장된 코드는 그대로 둔다
    try:
        await mailer.send_verification_code(email, entry.code)
    except DeliveryError:
        logger.exception("verification email delivery failed for %s", email)
        raise
    except Exception as e:
        logger.exception("verification email delivery failed for %s", email)
        raise DeliveryError(str(e))
    return entry


def validate_code(store: VerificationCodeStore, email: Optional[str], submitted: Union[int, str, None]) -> VerificationEntry:
    entry = store.get(email) if email else None
    code = parse_code(submitted)
    if entry is None or code is None or entry.code != code:
        raise InvalidCodeError()
    return entry


def get_code_store(request: Request) -> VerificationCodeStore:
    return request.app.state.code_store
