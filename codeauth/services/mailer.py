# codeauth/services/mailer.py
from email.message import EmailMessage
import logging

import aiosmtplib
from fastapi import Request

from codeauth.core.config import Settings
from codeauth.core.errors import DeliveryError

logger = logging.getLogger(__name__)

SUBJECT = "Seu código de verificação"


def build_message(sender: str, to_email: str, code: int, ttl_minutes: int) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to_email
    message["Subject"] = SUBJECT
    message.set_content(
        f"Olá,\n\n"
        f"Seu código de verificação é: {code}\n"
        f"Ele expira em {ttl_minutes} minutos.\n\n"
        f"Se você não solicitou este código, ignore este email.\n"
    )
    message.add_alternative(
        f"""<html>
  <body style="font-family: Arial, Helvetica, sans-serif;">
    <p>Seu código de verificação é:</p>
    <p style="font-size: 28px; font-weight: bold; letter-spacing: 6px;">{code}</p>
    <p style="color: #808080;">Ele expira em {ttl_minutes} minutos.</p>
  </body>
</html>
""",
        subtype="html",
    )
    return message


class SmtpEmailSender:
    def __init__(
        self,
        hostname: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        timeout: float = 10.0,
        ttl_minutes: int = 10,
    ):
        self.hostname = hostname
        self.port = port
        self.username = username
        self._password = password
        self.sender = sender
        self.timeout = timeout
        self.ttl_minutes = ttl_minutes

    async def send_verification_code(self, email: str, code: int) -> None:
        if not (self.hostname and self.username and self._password):
            raise DeliveryError("SMTP configuration missing")

        message = build_message(self.sender, email, code, self.ttl_minutes)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self._password,
                use_tls=(self.port == 465),
                start_tls=(self.port != 465),
                timeout=self.timeout,
            )
        except aiosmtplib.SMTPException as e:
            raise DeliveryError(str(e))
        logger.info("verification email sent to %s", email)


class ConsoleEmailSender:
    """Development sender: writes the code to the log instead of mailing it."""

    def __init__(self, ttl_minutes: int = 10):
        self.ttl_minutes = ttl_minutes

    async def send_verification_code(self, email: str, code: int) -> None:
        code = str(code)
        logger.info("verification code for %s: %s (expires in %s min)", email, code[:2] + "****", self.ttl_minutes)
        logger.debug("verification code for %s: %s", email, code)


def build_email_sender(settings: Settings):
    ttl = settings.VERIFICATION_CODE_TTL_MINUTES
    if settings.MAIL_BACKEND == "smtp":
        return SmtpEmailSender(
            hostname=settings.MAIL_SERVER,
            port=settings.MAIL_PORT,
            username=settings.MAIL_USERNAME,
            password=settings.MAIL_PASSWORD,
            sender=settings.MAIL_FROM,
            timeout=settings.MAIL_TIMEOUT,
            ttl_minutes=ttl,
        )
    return ConsoleEmailSender(ttl_minutes=ttl)


def get_email_sender(request: Request):
    return request.app.state.email_sender
