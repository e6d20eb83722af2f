"""
SMTP email sender.

Builds verification and password reset messages from TEMPLATES and sends
them over SMTP (STARTTLS when enabled). Links point at the public API
base URL so they work straight from the inbox.
"""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from urllib.parse import urlencode

from shared.config import Settings

from .exceptions import EmailDeliveryError
from .interfaces import IEmailSender
from .templates import TEMPLATES, render

logger = logging.getLogger(__name__)


class SMTPEmailSender(IEmailSender):
    """Send transactional email through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        from_name: str,
        base_url: str,
        app_name: str = "Portcullis",
        use_tls: bool = True,
        token_ttl_hours: int = 24,
        timeout: float = 10.0,
    ):
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from_email = from_email
        self._from_name = from_name
        self._base_url = base_url.rstrip("/")
        self._app_name = app_name
        self._use_tls = use_tls
        self._token_ttl_hours = token_ttl_hours
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPEmailSender":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
            base_url=settings.public_base_url,
            app_name=settings.smtp_from_name,
            use_tls=settings.smtp_use_tls,
            token_ttl_hours=settings.secret_token_ttl_hours,
        )

    def send_verification_email(self, to: str, name: str, token: str) -> None:
        self._send_template("verify_email", to, name, token)

    def send_password_reset_email(self, to: str, name: str, token: str) -> None:
        self._send_template("password_reset", to, name, token)

    def build_link(self, template: str, token: str) -> str:
        """Absolute URL for the action in ``template`` carrying ``token``."""
        path = TEMPLATES[template]["path"]
        return f"{self._base_url}{path}?{urlencode({'token': token})}"

    def _send_template(self, template: str, to: str, name: str, token: str) -> None:
        subject, body = render(
            template,
            name=html.escape(name),
            app_name=html.escape(self._app_name),
            action_url=html.escape(self.build_link(template, token)),
            expires_hours=str(self._token_ttl_hours),
        )
        self._send(to, subject, body)
        logger.info(f"Sent '{template}' email to {to}")

    def _send(self, to: str, subject: str, body_html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self._from_name, self._from_email))
        msg["To"] = to
        msg.attach(MIMEText(body_html, "html", "utf-8"))

        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {to} via {self._host}:{self._port} failed: {e}")
            raise EmailDeliveryError(to, str(e)) from e
