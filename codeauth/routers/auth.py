import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from codeauth.core.db import get_db
from codeauth.core.errors import AuthFlowError, LoginError, MissingTokenError
from codeauth.core.security import TokenService, get_password_rounds, get_token_service, require_token_service
from codeauth.schemas.auth import (
    LoginIn,
    MessageOut,
    RegisterIn,
    SendCodeIn,
    TokenClaimsOut,
    TokenOut,
    ValidateCodeIn,
)
from codeauth.services.mailer import get_email_sender
from codeauth.services.users import login_user, register_user
from codeauth.services.verification import (
    VerificationCodeStore,
    get_code_store,
    send_verification_code,
    validate_code,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

bearer = HTTPBearer(auto_error=False)


@router.post("/validate-code", response_model=MessageOut, status_code=status.HTTP_200_OK)
def validate_code_route(payload: ValidateCodeIn, store: VerificationCodeStore = Depends(get_code_store)):
    validate_code(store, payload.email, payload.verification_code)
    return {"message": "Código de verificação válido."}


@router.post("/send-verification-code", response_model=MessageOut, status_code=status.HTTP_200_OK)
async def send_verification_code_route(
    payload: SendCodeIn,
    request: Request,
    store: VerificationCodeStore = Depends(get_code_store),
    mailer=Depends(get_email_sender),
):
    ttl = request.app.state.settings.VERIFICATION_CODE_TTL_MINUTES * 60
    await send_verification_code(store, mailer, payload.email, ttl_seconds=ttl)
    return {"message": "Código de verificação enviado para o email"}


@router.post("/register", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterIn,
    db: Session = Depends(get_db),
    store: VerificationCodeStore = Depends(get_code_store),
    rounds: int = Depends(get_password_rounds),
):
    register_user(
        db,
        store,
        payload.name,
        payload.email,
        payload.password,
        verification_code=payload.verification_code,
        rounds=rounds,
    )
    return {"message": "Usuário criado com sucesso"}


@router.post("/login", response_model=TokenOut, status_code=status.HTTP_200_OK)
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    tokens: Optional[TokenService] = Depends(get_token_service),
):
    try:
        token = login_user(db, tokens, payload.email, payload.password)
    except AuthFlowError:
        raise
    except Exception:
        logger.exception("login failed")
        raise LoginError()
    return {"token": token}


@router.get("/verify-token", response_model=TokenClaimsOut, status_code=status.HTTP_200_OK)
def verify_token(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    tokens: Optional[TokenService] = Depends(get_token_service),
):
    # 헤더가 없거나 Bearer 스킴이 아니면 토큰 없음으로 처리
    if not creds or (creds.scheme or "").lower() != "bearer" or not creds.credentials:
        raise MissingTokenError()

    claims = require_token_service(tokens).decode(creds.credentials)
    return {
        "valid": True,
        "user_id": claims["userId"],
        "name": claims["name"],
        "email": claims["email"],
    }
