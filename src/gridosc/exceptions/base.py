"""Root of the gridosc exception hierarchy."""

from typing import Optional


class GridOscError(Exception):
    """
    Base exception for all gridosc errors.

    `str(error)` is the short user-facing message. Subclasses declare
    whether they are `recoverable` and may carry a standing `recovery_hint`
    as class attributes; either can be overridden per instance.

    Attributes:
        user_message: Short message suitable for an application's UI
        technical_message: Detailed message for logs (defaults to user_message)
        recoverable: True if retrying or reconnecting can succeed
        recovery_hint: What the user can do about it, if anything
    """

    recoverable: bool = False
    recovery_hint: Optional[str] = None

    def __init__(
        self,
        user_message: str,
        technical_message: Optional[str] = None,
        *,
        recoverable: Optional[bool] = None,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(user_message)
        self.user_message = user_message
        self.technical_message = technical_message or user_message
        if recoverable is not None:
            self.recoverable = recoverable
        if recovery_hint is not None:
            self.recovery_hint = recovery_hint

    def __str__(self) -> str:
        return self.user_message

    def get_full_message(self) -> str:
        """User message followed by the recovery hint, when there is one."""
        if not self.recovery_hint:
            return self.user_message
        return f"{self.user_message}\n\nSuggestion: {self.recovery_hint}"
