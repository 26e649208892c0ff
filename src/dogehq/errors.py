"""DogeHouse SDK error types."""


class DogeHouseError(Exception):
    """Base error for DogeHouse SDK operations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidCredentialsError(DogeHouseError):
    """Raised when login is called without a token or refresh token."""

    def __init__(self, message: str = "The token and refresh token are required"):
        super().__init__(message)


class SessionCollisionError(DogeHouseError):
    """Raised when the same account authenticates a second session."""

    def __init__(
        self,
        message: str = "You can only login on one account at the same time",
    ):
        super().__init__(message)


class UsernameTakenError(DogeHouseError):
    """Raised when a bot cannot be created because its username is taken."""

    def __init__(self, username: str):
        super().__init__(f'The username "{username}" is taken')
        self.username = username


class ClientDestroyedError(DogeHouseError):
    """Raised when a destroyed client is asked to log in again."""


class NotConnectedError(DogeHouseError):
    """Raised when an operation needs a connection that is not open."""


class RequestTimeoutError(DogeHouseError):
    """Raised when the server does not answer a fetch in time."""

    def __init__(self, opcode: str, timeout: float):
        super().__init__(f"Request '{opcode}' timed out after {timeout}s")
        self.opcode = opcode
        self.timeout = timeout
