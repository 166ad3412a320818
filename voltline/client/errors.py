from __future__ import annotations


class NotificationApiError(Exception):
    """Raised when the notifications API cannot be reached or rejects a request."""

    def __init__(self, message: str, *, status_code: int | None = None, retryable: bool = False):
        self.message = message
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)
