import os

# 모듈 import 시점의 기본 엔진이 파일 DB 를 만들지 않도록
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from codeauth.core.config import Settings
from codeauth.core.db import Base, get_db
from codeauth.core.errors import DeliveryError
from codeauth.main import create_app
from codeauth.services.verification import VerificationCodeStore

TEST_SECRET = "test-signing-secret"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingMailer:
    def __init__(self):
        self.sent = []
        self.fail_with = None

    async def send_verification_code(self, email, code):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((email, code))

    def last_code(self, email):
        for to, code in reversed(self.sent):
            if to == email:
                return code
        return None


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = Session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def settings():
    # bcrypt 최소 cost 로 테스트 속도 확보
    return Settings(_env_file=None, JWT_SECRET=TEST_SECRET, BCRYPT_ROUNDS=4, MAIL_BACKEND="console")


def _build_client(settings, engine, clock, mailer):
    app = create_app(settings, create_tables=False)
    app.state.code_store = VerificationCodeStore(clock=clock)
    app.state.email_sender = mailer

    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def client(settings, engine, clock, mailer):
    with _build_client(settings, engine, clock, mailer) as c:
        yield c


@pytest.fixture
def client_without_secret(engine, clock, mailer):
    settings = Settings(_env_file=None, JWT_SECRET=None, BCRYPT_ROUNDS=4)
    with _build_client(settings, engine, clock, mailer) as c:
        yield c


@pytest.fixture
def failing_mailer(mailer):
    mailer.fail_with = DeliveryError("smtp connection refused")
    return mailer
