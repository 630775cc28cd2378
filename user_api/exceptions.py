"""Error taxonomy shared by the repositories, services and API layer."""


class RepositoryError(Exception):
    """Unexpected failure in the backing store."""


class DuplicateKeyError(RepositoryError):
    """A unique constraint (the user e-mail) was violated."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for {field}: {value}")


class TokenError(Exception):
    """Base class for access token verification failures."""


class TokenExpiredError(TokenError):
    """The token signature is valid but the token is past its expiry."""


class TokenInvalidError(TokenError):
    """The signature does not match or required claims are missing."""


class TokenMalformedError(TokenError):
    """The token could not be parsed as a JWT."""


class AccountError(Exception):
    """Base class for errors surfaced to API clients.

    Each subclass carries the HTTP status it maps to and a short ``kind``
    used as the ``error`` field of the response body.
    """

    status_code: int = 400
    kind: str = "Bad request"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class DuplicateAccountError(AccountError):
    status_code = 400
    kind = "Duplicate account"


class InvalidCredentialsError(AccountError):
    status_code = 401
    kind = "Invalid credentials"

    def __init__(self, message: str = "Not valid credentials"):
        super().__init__(message)


class UserNotFoundError(AccountError):
    status_code = 404
    kind = "Not found"

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class UnauthenticatedError(AccountError):
    status_code = 401
    kind = "Unauthenticated"


class ForbiddenError(AccountError):
    status_code = 403
    kind = "Forbidden"


class InternalFailureError(AccountError):
    status_code = 500
    kind = "Internal error"

    def __init__(self, message: str = "Something happened on our side"):
        super().__init__(message)
