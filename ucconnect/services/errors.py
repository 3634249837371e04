"""
Domain errors raised by the service layer.

Routers translate these into HTTP responses.
"""


class ConnectError(Exception):
    """Base class for UCalgaryConnect domain errors."""


class AuthError(ConnectError):
    """Sign-in, sign-up or sign-out was rejected by the auth service."""


class ProfileNotFound(ConnectError):
    """No profile exists for the requested user. Means "needs setup"."""

    code = "profile_not_found"

    def __init__(self, user_id: str):
        super().__init__(f"No profile found for user {user_id}")
        self.user_id = user_id


class ConnectionNotFound(ConnectError):
    """
    No connection matched the write filter.

    Raised when the id doesn't exist, the caller has the wrong role for the
    transition, or the request is no longer pending.
    """

    def __init__(self, connection_id: int):
        super().__init__(f"Connection {connection_id} not found or not actionable")
        self.connection_id = connection_id


class DuplicateConnection(ConnectError):
    """A connection already relates this pair of users (in either direction)."""

    def __init__(self, user_a: str, user_b: str):
        super().__init__(f"A connection already exists between {user_a} and {user_b}")
        self.user_a = user_a
        self.user_b = user_b


class InvalidConnection(ConnectError):
    """The requested connection or transition is not allowed."""
