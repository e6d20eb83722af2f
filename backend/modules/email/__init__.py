"""
Email module.

Sends verification and password reset emails.

Public API:
- IEmailSender: Interface for outbound email
- SMTPEmailSender: SMTP implementation
- EmailDeliveryError: Raised when a message cannot be sent
"""

from .interfaces import IEmailSender
from .sender import SMTPEmailSender
from .exceptions import EmailDeliveryError

__all__ = [
    "IEmailSender",
    "SMTPEmailSender",
    "EmailDeliveryError",
]
