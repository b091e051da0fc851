from __future__ import annotations


class NotificationValidationError(ValueError):
    """Input rejected before anything is persisted.

    ``message`` is user-facing and is returned verbatim by the API layer.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotificationNotFoundError(LookupError):
    """No reminder or manual notification row matches the given id."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(notification_id)
        self.notification_id = notification_id
