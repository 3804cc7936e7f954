from src.exceptions import ConflictException, ForbiddenException, ValidationException


class AlreadySubscribedException(ConflictException):
    def __init__(self, detail: str = "already subscribed"):
        super().__init__(detail=detail)


class SelfSubscriptionException(ValidationException):
    def __init__(self, detail: str = "cannot subscribe to yourself"):
        super().__init__(detail=detail)


class SubscriptionOwnershipException(ForbiddenException):
    def __init__(self, detail: str = "You can only manage your own subscriptions"):
        super().__init__(detail=detail)
