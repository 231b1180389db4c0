# codeauth/core/errors.py
"""
요청 처리 중 발생하는 오류 계층.

모든 오류는 라우터 경계에서 JSON 으로 변환된다. 기본 형태는 ``{"message": ...}``
이며, 전송 실패는 ``error`` 를, 토큰 오류는 ``valid: false`` 를 함께 내려준다.
비밀번호, 해시, 서명 키는 어떤 응답에도 포함되지 않는다.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AuthFlowError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Requisição inválida"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(AuthFlowError):
    default_message = "Por favor, preencha todos os campos obrigatórios"


class VerificationError(AuthFlowError):
    default_message = "Email não verificado. Por favor, envie um código de verificação primeiro."


class InvalidCodeError(VerificationError):
    default_message = "Código de verificação inválido ou expirado"


class DeliveryError(AuthFlowError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Erro ao enviar o código de verificação"

    def __init__(self, error: str, message: Optional[str] = None):
        super().__init__(message)
        self.error = error

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.error}


class UserCreationError(AuthFlowError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Erro ao criar usuário"


class NotFoundError(AuthFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Usuario não encontrado"


class UnverifiedError(AuthFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Email não cadastrado"


class AuthError(AuthFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Senha invalida"


class LoginError(AuthFlowError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Erro no login"


class ConfigError(AuthFlowError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Erro de configuração do servidor"


class MissingTokenError(AuthFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Token não fornecido."


class TokenError(AuthFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Token inválido ou expirado."

    def to_body(self) -> Dict[str, Any]:
        return {"valid": False, "message": self.message}


async def auth_flow_error_handler(request: Request, exc: AuthFlowError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # 본문이 JSON 이 아니거나 타입이 맞지 않는 경우 (422 대신 400)
    locs = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
    logger.info("rejected malformed body on %s: %s", request.url.path, locs)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": "Corpo da requisição inválido"})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthFlowError, auth_flow_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
