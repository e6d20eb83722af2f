"""
Email module interface.

Services depend on IEmailSender, not on SMTP. Methods are blocking and
are called through shared.concurrency.call_with_timeout.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class IEmailSender(Protocol):
    """Outbound transactional email."""

    def send_verification_email(self, to: str, name: str, token: str) -> None:
        """
        Send the email address verification link.

        Raises:
            EmailDeliveryError: If the message could not be sent
        """
        ...

    def send_password_reset_email(self, to: str, name: str, token: str) -> None:
        """
        Send the password reset link.

        Raises:
            EmailDeliveryError: If the message could not be sent
        """
        ...
