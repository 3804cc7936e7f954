from src.exceptions import ServiceException, ValidationException


class InvalidAmountException(ValidationException):
    def __init__(self, detail: str = "Amount must be at least 1"):
        super().__init__(detail=detail)


class InsufficientBalanceException(ValidationException):
    def __init__(self, detail: str = "Insufficient balance"):
        super().__init__(detail=detail)


class DonationTargetNotFoundException(ValidationException):
    """Donations resolve the creator from the post cache; a miss is a bad request."""

    def __init__(self, detail: str = "Post not found"):
        super().__init__(detail=detail)


class SelfDonationException(ValidationException):
    def __init__(self, detail: str = "Cannot donate to your own post"):
        super().__init__(detail=detail)


class WalletOperationException(ServiceException):
    def __init__(self, detail: str = "Failed to process wallet operation"):
        super().__init__(detail=detail)
