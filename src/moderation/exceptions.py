from src.exceptions import ServiceException, ValidationException
from src.moderation import constants


class InvalidReviewStatusException(ValidationException):
    def __init__(self, detail: str = "Status must be approved or rejected"):
        super().__init__(detail=detail)


class ModerationUpdateException(ServiceException):
    def __init__(self, detail: str = constants.UPDATE_FAILED):
        super().__init__(detail=detail)
