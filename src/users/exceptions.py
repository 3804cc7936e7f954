from src.exceptions import NotFoundException, ValidationException


class UserNotFoundException(NotFoundException):
    def __init__(self, detail: str = "User not found"):
        super().__init__(detail=detail)


class InvalidAvatarException(ValidationException):
    def __init__(self, detail: str = "Invalid file type. Allowed: jpg, jpeg, png, gif"):
        super().__init__(detail=detail)
