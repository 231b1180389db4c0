from typing import Optional, Union
from .base import BaseSchema

# 필수 여부는 핸들러에서 검사한다 (누락 시 422 가 아니라 400 {message})

class SendCodeIn(BaseSchema):
    email: Optional[str] = None


class ValidateCodeIn(BaseSchema):
    email: Optional[str] = None
    verification_code: Optional[Union[int, str]] = None


class RegisterIn(BaseSchema):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    verification_code: Optional[Union[int, str]] = None


class LoginIn(BaseSchema):
    email: Optional[str] = None
    password: Optional[str] = None


class MessageOut(BaseSchema):
    message: str


class TokenOut(BaseSchema):
    token: str


class TokenClaimsOut(BaseSchema):
    valid: bool = True
    user_id: int
    name: str
    email: str
