from src.exceptions import ForbiddenException, NotFoundException, ServiceException, ValidationException
from src.posts import constants


class PostNotFoundException(NotFoundException):
    def __init__(self, detail: str = constants.POST_NOT_FOUND):
        super().__init__(detail=detail)


class NotPostOwnerException(ForbiddenException):
    def __init__(self, detail: str = constants.NOT_POST_OWNER):
        super().__init__(detail=detail)


class PostValidationException(ValidationException):
    def __init__(self, detail: str):
        super().__init__(detail=detail)


class MediaUploadException(ServiceException):
    def __init__(self, detail: str = constants.UPLOAD_FAILED):
        super().__init__(detail=detail)


class PostPersistenceException(ServiceException):
    def __init__(self, detail: str = constants.CREATE_FAILED):
        super().__init__(detail=detail)
