"""
Email module exceptions.
"""

from shared.exceptions import ExternalServiceError


class EmailDeliveryError(ExternalServiceError):
    """Raised when an email could not be handed to the SMTP server."""

    def __init__(self, recipient: str, reason: str):
        super().__init__(
            f"Failed to send email to {recipient}: {reason}",
            service="smtp",
            code="EMAIL_DELIVERY_FAILED",
            details={"recipient": recipient},
        )
