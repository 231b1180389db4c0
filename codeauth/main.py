# codeauth/main.py
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from codeauth.core.config import Settings, settings as default_settings
from codeauth.core.db import Base, engine
from codeauth.core.errors import install_error_handlers
from codeauth.core.security import TokenService
from codeauth.services.mailer import build_email_sender
from codeauth.services.verification import VerificationCodeStore

from codeauth.models.user import User  # noqa: F401  (테이블 등록)
from codeauth.routers.auth import router as auth_router
from codeauth.routers.health import router as health_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, create_tables: bool = True) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="codeauth API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 요청마다 설정을 읽지 않도록 앱 생성 시 한 번만 만든다
    app.state.settings = settings
    app.state.token_service = TokenService.from_settings(settings)
    app.state.code_store = VerificationCodeStore()
    app.state.email_sender = build_email_sender(settings)

    install_error_handlers(app)

    if create_tables:
        Base.metadata.create_all(bind=engine)
        logger.info("database ready: %s", engine.url.get_backend_name())

    for r in (health_router, auth_router):
        app.include_router(r)

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version="1.0.0",
            description="Email-code verified registration and JWT login",
            routes=app.routes,
        )
        comps = schema.setdefault("components", {})
        schemes = comps.setdefault("securitySchemes", {})
        schemes["BearerAuth"] = {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("codeauth.main:app", host="0.0.0.0", port=8000, reload=True)
