"""JSON-RPC 2.0 transport over HTTPS.

JsonRpcTransport builds request envelopes, posts them with ``requests`` and
hands back the raw body together with the request id. Verifying the response
is a separate step (``decode``) so callers decide when a body is checked.
"""

import itertools
import json
import random
import threading
import time
from typing import Any

import requests
from pydantic import ValidationError

from untis_client.errors import (
    Cancelled,
    DeadlineExceeded,
    IdentifierMismatch,
    MalformedResponse,
    NetworkError,
    RemoteError,
)
from untis_client.logging import get_logger
from untis_client.models import RpcResponse

logger = get_logger(__name__)

SESSION_COOKIE = "JSESSIONID"

# Random starting ids stay well below int64 so the counter never overflows
_MAX_FIRST_ID = 2**31


class Deadline:
    """Caller-supplied time budget for a whole operation.

    One Deadline is passed down through every request an operation makes
    (a timetable fetch may make many). ``cancel()`` may be called from another
    thread; requests not yet sent then fail with Cancelled.
    """

    def __init__(self, seconds: float) -> None:
        self.expires_at = time.monotonic() + seconds
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def check(self, method: str) -> float:
        """Return the remaining seconds, or raise if no request may be sent."""
        if self.cancelled:
            raise Cancelled(f"{method}: operation cancelled")
        remaining = self.remaining()
        if remaining <= 0:
            raise DeadlineExceeded(f"{method}: deadline exceeded")
        return remaining


class JsonRpcTransport:
    """Posts JSON-RPC envelopes to a single WebUntis endpoint.

    Request ids come from a monotonic counter, so they never repeat within
    the transport's lifetime. Pass ``first_id`` for reproducible ids.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float | None = None,
        http: requests.Session | None = None,
        first_id: int | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            url: JSON-RPC endpoint, including the ``school`` query parameter.
            timeout: Per-request timeout in seconds; None waits indefinitely.
            http: HTTP session to post through (a fresh one if omitted).
            first_id: First request id; random non-negative if omitted.
        """
        if first_id is None:
            first_id = random.randrange(_MAX_FIRST_ID)
        if first_id < 0:
            raise ValueError("first_id must be non-negative")

        self.url = url
        self.timeout = timeout
        self._http = http if http is not None else requests.Session()
        self._ids = itertools.count(first_id)
        self._id_lock = threading.Lock()

    def next_id(self) -> int:
        with self._id_lock:
            return next(self._ids)

    def _effective_timeout(
        self, method: str, deadline: Deadline | None
    ) -> float | None:
        if deadline is None:
            return self.timeout
        remaining = deadline.check(method)
        if self.timeout is None:
            return remaining
        return min(self.timeout, remaining)

    def send(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        session_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> tuple[str, int]:
        """Send one request and return ``(raw_body, request_id)``.

        Args:
            method: JSON-RPC method name (``authenticate``, ``getTimetable``, ...).
            params: Method parameters; an empty object if omitted.
            session_id: Session token, attached as the JSESSIONID cookie.
            deadline: Optional time budget shared with the enclosing operation.

        Raises:
            NetworkError: Connection failure, timeout or HTTP error status.
            DeadlineExceeded: The deadline had already expired.
            Cancelled: The deadline was cancelled.
        """
        timeout = self._effective_timeout(method, deadline)
        request_id = self.next_id()
        envelope = {
            "id": request_id,
            "method": method,
            "params": params if params is not None else {},
            "jsonrpc": "2.0",
        }
        cookies = {SESSION_COOKIE: session_id} if session_id else None

        logger.debug("rpc_request_sent", method=method, request_id=request_id)
        try:
            response = self._http.post(
                self.url, json=envelope, cookies=cookies, timeout=timeout
            )
            response.raise_for_status()
        except requests.Timeout as e:
            logger.warning("rpc_timeout", method=method, request_id=request_id)
            if deadline is not None and deadline.remaining() <= 0:
                raise DeadlineExceeded(f"{method}: deadline exceeded") from e
            raise NetworkError(f"{method}: request timed out: {e}") from e
        except requests.RequestException as e:
            logger.warning(
                "rpc_transport_error",
                method=method,
                request_id=request_id,
                error=str(e),
                type=type(e).__name__,
            )
            raise NetworkError(f"{method}: {e}") from e

        return response.text, request_id

    @staticmethod
    def decode(raw: str, request_id: int, method: str) -> Any:
        """Verify a response body against its request and return ``result``.

        The server echoes the id as a string; it is compared against the
        decimal form of the request id.

        Raises:
            MalformedResponse: Body is not a JSON-RPC envelope.
            IdentifierMismatch: Response id differs from the request id.
            RemoteError: The server returned an ``error`` member.
        """
        try:
            response = RpcResponse.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            raise MalformedResponse(f"{method}: invalid response envelope: {e}") from e

        if response.id is None or str(response.id) != str(request_id):
            logger.warning(
                "rpc_id_mismatch",
                method=method,
                request_id=request_id,
                response_id=response.id,
            )
            raise IdentifierMismatch(method, request_id, response.id)

        if response.error is not None:
            raise RemoteError(method, response.error.code, response.error.message)

        return response.result

    def close(self) -> None:
        self._http.close()
