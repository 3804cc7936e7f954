from src.exceptions import ServiceException


class NotificationException(ServiceException):
    """Base exception for notification-related errors"""
    def __init__(self, detail: str = "Notification error"):
        super().__init__(detail=detail)


class NotificationDeliveryException(NotificationException):
    def __init__(self, detail: str = "Failed to send notification"):
        super().__init__(detail=detail)


class NotificationSettingsException(NotificationException):
    def __init__(self, detail: str = "Failed to update notification settings"):
        super().__init__(detail=detail)


class QueueUnavailableException(NotificationException):
    def __init__(self, detail: str = "Failed to get queue length"):
        super().__init__(detail=detail)


class InvalidTaskError(ValueError):
    """A queue task is structurally unusable; redelivering it cannot help."""

