"""HTTP transport with per-attempt deadlines, backoff retries and cancellation.

State machine per ``send`` call:

    Attempting -> Succeeded
               -> ClassifyFailure -> Retryable -> Backoff -> Attempting
                                  -> Fatal     -> Failed

Only one attempt is ever in flight. Retries are sequential and separated by
real waits of ``base * multiplier ** (n - 1)`` seconds.
"""

import asyncio
import json
import time
from collections.abc import Callable
from typing import Any

import httpx

from idsubmit.logging.logger import Log
from idsubmit.transport.cancellation import CancellationToken
from idsubmit.transport.exceptions import (
    FatalTransportError,
    TransientTransportError,
    TransportCancelledError,
    TransportTimeoutError,
)
from idsubmit.transport.models import (
    AttemptOutcome,
    OutboundRequest,
    RetryPolicy,
    TransportAttempt,
    TransportResponse,
)

RetryCallback = Callable[[int, float], None]

ERROR_BODY_MAX_CHARS = 300


class _RetryableFailure(Exception):
    """Internal signal: the attempt failed in a way worth retrying."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.timed_out = timed_out


class ResilientTransport:
    """Sends one logical request with bounded retries.

    Args:
        base_url: Backend root URL.
        verify_ssl: Forwarded to httpx.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
        bearer_token: Default token sent as ``Authorization: Bearer``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        verify_ssl: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
        bearer_token: str | None = None,
    ) -> None:
        self._base_url = base_url
        self._verify_ssl = verify_ssl
        self._transport = transport
        self._bearer_token = bearer_token

    def _client(self, policy: RetryPolicy) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=policy.per_attempt_timeout_seconds,
            verify=self._verify_ssl,
            transport=self._transport,
        )

    async def send(
        self,
        request: OutboundRequest,
        policy: RetryPolicy,
        *,
        cancel_token: CancellationToken | None = None,
        on_retry: RetryCallback | None = None,
        bearer_token: str | None = None,
    ) -> TransportResponse:
        """Send ``request`` until it succeeds, fails fatally or the budget runs out.

        Raises:
            FatalTransportError: 4xx or other non-retryable response.
            TransientTransportError: retryable failures exhausted the budget.
            TransportTimeoutError: the last permitted attempt timed out.
            TransportCancelledError: ``cancel_token`` fired.
        """
        token = cancel_token if cancel_token is not None else CancellationToken()
        headers = self._headers(request, bearer_token or self._bearer_token)
        total_backoff = 0.0
        retry_number = 0

        async with self._client(policy) as client:
            while True:
                if token.cancelled:
                    raise TransportCancelledError(token.reason or "cancelled before attempt")

                started_at = time.monotonic()
                attempt = TransportAttempt(
                    attempt_number=retry_number + 1,
                    started_at=started_at,
                    timeout_deadline=started_at + policy.per_attempt_timeout_seconds,
                )
                try:
                    response = await self._attempt(client, request, headers, policy, token)
                    body = self._classify(response, attempt)
                except _RetryableFailure as failure:
                    attempt.outcome = AttemptOutcome.TRANSIENT_FAILURE
                    self._log_attempt(attempt, str(failure))
                    if retry_number >= policy.max_attempts:
                        Log.error(f"Giving up after {attempt.attempt_number} attempt(s)")
                        raise self._exhausted(failure, attempt.attempt_number) from failure
                except TransportCancelledError:
                    attempt.outcome = AttemptOutcome.CANCELLED
                    self._log_attempt(attempt, "cancelled in flight")
                    raise
                except FatalTransportError as exc:
                    attempt.outcome = AttemptOutcome.FATAL_FAILURE
                    self._log_attempt(attempt, str(exc))
                    raise
                else:
                    attempt.outcome = AttemptOutcome.SUCCESS
                    self._log_attempt(attempt, f"HTTP {response.status_code}")
                    return TransportResponse(
                        status_code=response.status_code,
                        body=body,
                        headers=dict(response.headers),
                        attempts=attempt.attempt_number,
                        total_backoff_seconds=total_backoff,
                    )

                retry_number += 1
                delay = policy.backoff_for_retry(retry_number)
                Log.warning(
                    f"Retrying in {delay:.2f}s",
                    retry=retry_number,
                    max_retries=policy.max_attempts,
                )
                if on_retry is not None:
                    on_retry(retry_number, delay)
                backoff_started = time.monotonic()
                if await token.sleep(delay):
                    raise TransportCancelledError(token.reason or "cancelled during backoff")
                total_backoff += time.monotonic() - backoff_started

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        request: OutboundRequest,
        headers: dict[str, str],
        policy: RetryPolicy,
        token: CancellationToken,
    ) -> httpx.Response:
        request_task = asyncio.ensure_future(
            asyncio.wait_for(
                client.request(
                    request.method,
                    request.path,
                    files=request.files or None,
                    headers=headers,
                ),
                timeout=policy.per_attempt_timeout_seconds,
            )
        )
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            done, _pending = await asyncio.wait(
                {request_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (request_task, cancel_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(request_task, cancel_task, return_exceptions=True)

        if request_task not in done or request_task.cancelled():
            raise TransportCancelledError(token.reason or "cancelled in flight")

        try:
            return request_task.result()
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise _RetryableFailure(
                f"Attempt exceeded {policy.per_attempt_timeout_seconds}s deadline",
                timed_out=True,
            ) from exc
        except httpx.RequestError as exc:
            raise _RetryableFailure(f"Request error: {type(exc).__name__}: {exc}") from exc

    @staticmethod
    def _classify(response: httpx.Response, attempt: TransportAttempt) -> bytes:
        status = response.status_code
        body = response.content
        if 200 <= status < 300:
            return body
        if status >= 500:
            raise _RetryableFailure(f"Server error: HTTP {status}", status_code=status)
        if status >= 400:
            code, message = _error_details(body)
            raise FatalTransportError(
                message or f"HTTP {status}",
                status_code=status,
                code=code or "HTTP_ERROR",
                attempts=attempt.attempt_number,
            )
        if _parse_json(body) is not None:
            return body
        raise FatalTransportError(
            f"Unexpected HTTP {status} without a JSON body",
            status_code=status,
            code="UNEXPECTED_STATUS",
            attempts=attempt.attempt_number,
        )

    @staticmethod
    def _headers(request: OutboundRequest, bearer_token: str | None) -> dict[str, str]:
        headers = {"Accept": "application/json", **request.headers}
        if bearer_token:
            headers["Authorization"] = f"Bearer {bearer_token}"
        return headers

    @staticmethod
    def _exhausted(failure: _RetryableFailure, attempts: int) -> TransientTransportError:
        if failure.timed_out:
            return TransportTimeoutError(
                f"Request timed out after {attempts} attempt(s): {failure}",
                attempts=attempts,
                last_status=failure.status_code,
            )
        return TransientTransportError(
            f"Request failed after {attempts} attempt(s): {failure}",
            attempts=attempts,
            last_status=failure.status_code,
        )

    @staticmethod
    def _log_attempt(attempt: TransportAttempt, detail: str) -> None:
        elapsed = time.monotonic() - attempt.started_at
        outcome = attempt.outcome.value if attempt.outcome else "unknown"
        message = f"Attempt {attempt.attempt_number} {outcome}: {detail}"
        if attempt.outcome is AttemptOutcome.SUCCESS:
            Log.info(message, elapsed_seconds=round(elapsed, 3))
        else:
            Log.warning(message, elapsed_seconds=round(elapsed, 3))


def _parse_json(body: bytes) -> Any:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _error_details(body: bytes) -> tuple[str, str]:
    data = _parse_json(body)
    if isinstance(data, dict):
        return str(data.get("code") or ""), str(data.get("message") or "")
    text = body.decode("utf-8", errors="replace").strip()
    return "", text[:ERROR_BODY_MAX_CHARS]
