from src.auth import constants
from src.exceptions import ConflictException, ForbiddenException, UnauthorizedException


class InvalidCredentialsException(UnauthorizedException):
    def __init__(self, detail: str = constants.INVALID_CREDENTIALS):
        super().__init__(detail=detail)


class InactiveAccountException(ForbiddenException):
    def __init__(self, detail: str = constants.ACCOUNT_INACTIVE):
        super().__init__(detail=detail)


class UserAlreadyExistsException(ConflictException):
    def __init__(self, detail: str = "User already exists"):
        super().__init__(detail=detail)


class TokenNotValidException(UnauthorizedException):
    def __init__(self, detail: str = constants.TOKEN_INVALID):
        super().__init__(detail=detail)


class InsufficientRoleException(ForbiddenException):
    def __init__(self, detail: str = constants.INSUFFICIENT_ROLE):
        super().__init__(detail=detail)
