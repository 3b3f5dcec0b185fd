"""
Notes Backend — Abstract Email Sender Interface
================================================

What:  Contract for delivering one-time passcodes by email.
How:   Concrete implementations inherit from EmailSender and implement
       send_otp(). OTPService depends only on this interface.
Who:   Called by OTPService.request_challenge after the challenge is stored.

Implementations:
    - SMTPEmailSender: SMTP submission with STARTTLS (default)
    - Test doubles: AsyncMock(spec=EmailSender) in the test suite
"""

from abc import ABC, abstractmethod


class EmailSender(ABC):
    """
    Abstract interface for OTP email delivery.

    Contract:
        - send_otp() returns None once the message is accepted for delivery
        - Every transport failure is raised as DeliveryError
        - Implementations never log the code
    """

    @abstractmethod
    async def send_otp(self, email: str, code: str) -> None:
        """
        Deliver a passcode to an address.

        Args:
            email: Normalized recipient address.
            code:  Six-digit passcode.

        Raises:
            DeliveryError: The message could not be handed to the mail server.
        """
        raise NotImplementedError
