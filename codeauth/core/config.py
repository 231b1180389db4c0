# codeauth/core/config.py
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./codeauth.db"

    # 비어 있으면 /login, /verify-token 이 500 으로 응답
    JWT_SECRET: Optional[str] = None
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    VERIFICATION_CODE_TTL_MINUTES: int = 10
    BCRYPT_ROUNDS: int = 10

    # console 은 개발용: 메일을 보내지 않고 로그에만 남김
    MAIL_BACKEND: Literal["smtp", "console"] = "smtp"
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_PORT: int = 587
    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_FROM: str = "noreply@codeauth.local"
    MAIL_TIMEOUT: float = 10.0

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
