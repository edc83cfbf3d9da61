"""Error hierarchy for the WebUntis client.

Errors are split into transient failures (may succeed on retry) and permanent
failures (will not), so callers can hand retry decisions to tenacity.
The client itself never retries.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def fetch_week(client: UntisClient, username: str):
        ...
"""


class UntisError(Exception):
    """Base exception for all client errors."""

    pass


class TransientError(UntisError):
    """Temporary failure that may succeed on retry."""

    pass


class NetworkError(TransientError):
    """Transport-level failure: connection refused, timeout, HTTP error status.

    The underlying ``requests`` exception is available as ``__cause__``.
    """

    pass


class DeadlineExceeded(NetworkError):
    """The caller-supplied deadline expired before or during a request."""

    pass


class PermanentError(UntisError):
    """Failure that won't succeed on retry."""

    pass


class ProtocolError(PermanentError):
    """The server answered, but not with what the protocol requires."""

    pass


class IdentifierMismatch(ProtocolError):
    """Response correlation id does not match the request id."""

    def __init__(self, method: str, expected: int, received: object) -> None:
        super().__init__(
            f"{method}: response id {received!r} does not match request id {expected}"
        )
        self.method = method
        self.expected = expected
        self.received = received


class MalformedResponse(ProtocolError):
    """Decoded payload lacks an expected field or has the wrong type."""

    pass


class RemoteError(ProtocolError):
    """The server returned a JSON-RPC ``error`` member instead of a result."""

    def __init__(self, method: str, code: int, message: str) -> None:
        super().__init__(f"{method}: remote error {code}: {message}")
        self.method = method
        self.code = code
        self.message = message


class SessionStateError(PermanentError):
    """Operation not allowed in the session's current state."""

    pass


class NotAuthenticated(SessionStateError):
    pass


class AlreadyAuthenticated(SessionStateError):
    pass


class NotFound(PermanentError):
    """Name -> id lookup (teacher, class) or registry lookup failed."""

    pass


class Cancelled(PermanentError):
    """The caller cancelled the operation's deadline."""

    pass
