import asyncio
from collections.abc import Callable

from idsubmit.config.settings import Settings
from idsubmit.imaging.exceptions import DecodeError
from idsubmit.imaging.file_detection import ACCEPTED_MIME_TYPES, format_for_mime
from idsubmit.imaging.models import CompressionResult, SourceImage
from idsubmit.imaging.planner import CompressionPlanner
from idsubmit.logging.logger import Log
from idsubmit.network.gate import NetworkGate, NetworkGateFactory
from idsubmit.normalization.models import ExtractionResult
from idsubmit.normalization.normalizer import ResponseNormalizer
from idsubmit.submission.exceptions import (
    MissingIdentityError,
    PayloadTooLargeError,
    UnsupportedFormatError,
)
from idsubmit.submission.models import DocumentKind, SubmissionRequest
from idsubmit.submission.session import SessionContext
from idsubmit.transport.cancellation import CancellationToken
from idsubmit.transport.exceptions import (
    FatalTransportError,
    TransientTransportError,
)
from idsubmit.transport.models import MultipartPart, OutboundRequest, RetryPolicy
from idsubmit.transport.transport import ResilientTransport, RetryCallback

SlowWakeCallback = Callable[[], None]


class UploadOrchestrator:
    """Runs one submission end to end.

    Pipeline: identity -> format check -> compress -> size check -> gate
    -> upload -> normalize. Every precondition is checked before the network
    is touched.
    """

    def __init__(
        self,
        planner: CompressionPlanner,
        transport: ResilientTransport,
        normalizer: ResponseNormalizer,
        gate: NetworkGate,
        policy: RetryPolicy,
        *,
        upload_path: str,
        target_size_bytes: int,
        max_combined_bytes: int,
        warm_up_policy: RetryPolicy | None = None,
        health_path: str = "/api/health",
        wake_notice_seconds: float = 2.0,
    ) -> None:
        self._planner = planner
        self._transport = transport
        self._normalizer = normalizer
        self._gate = gate
        self._policy = policy
        self._upload_path = upload_path
        self._target_size_bytes = target_size_bytes
        self._max_combined_bytes = max_combined_bytes
        self._warm_up_policy = warm_up_policy or RetryPolicy()
        self._health_path = health_path
        self._wake_notice_seconds = wake_notice_seconds

    async def submit(
        self,
        front_source: SourceImage,
        back_source: SourceImage | None = None,
        declared_kind: str | None = None,
        session: SessionContext | None = None,
        cancel_token: CancellationToken | None = None,
        on_retry: RetryCallback | None = None,
    ) -> ExtractionResult:
        """Compress, upload and normalize one document (front and optional back).

        Raises:
            PreconditionError: identity missing, unsupported format or payload
                too large. Nothing is sent in these cases.
            TransportError: the upload failed or was cancelled.
            MalformedResponseError: the backend answered with a non-object body.
        """
        session = session if session is not None else SessionContext()

        # Step 1: Resolve identity
        subject_id = session.resolve_subject_id()
        if not subject_id:
            raise MissingIdentityError("User ID not available. Please login again.")

        # Step 2: Reject unsupported formats
        sources = [front_source] if back_source is None else [front_source, back_source]
        for source in sources:
            if source.mime_type.lower() not in ACCEPTED_MIME_TYPES:
                raise UnsupportedFormatError(
                    f"Unsupported format '{source.mime_type}' for {source.filename}; "
                    f"expected PNG, JPEG or PDF"
                )

        # Step 3: Compress each side sequentially, off the event loop
        front = await self._compress(front_source)
        back = await self._compress(back_source) if back_source is not None else None
        request = SubmissionRequest(
            front=front,
            back=back,
            declared_kind=DocumentKind.wire_value(declared_kind),
            subject_id=subject_id,
            bearer_token=session.bearer_token,
        )

        # Step 4: Enforce the combined ceiling
        if request.combined_byte_length > self._max_combined_bytes:
            raise PayloadTooLargeError(
                f"Documents total {request.combined_byte_length} bytes, "
                f"limit is {self._max_combined_bytes}",
                byte_length=request.combined_byte_length,
                limit=self._max_combined_bytes,
            )

        # Step 5: Advisory connectivity check
        if not self._gate.is_transmission_advisable():
            Log.warning("Network check failed, attempting the upload anyway")

        # Step 6-7: Upload
        Log.info(
            f"Uploading {request.combined_byte_length} bytes",
            subject_id=subject_id,
            piece_type=request.declared_kind or "-",
        )
        response = await self._transport.send(
            OutboundRequest(method="POST", path=self._upload_path, files=_multipart(request)),
            self._policy,
            cancel_token=cancel_token,
            on_retry=on_retry,
            bearer_token=request.bearer_token,
        )
        Log.info(f"Upload accepted after {response.attempts} attempt(s)")

        # Step 8: Normalize
        return self._normalizer.normalize(response.body)

    async def warm_up(
        self,
        cancel_token: CancellationToken | None = None,
        on_slow: SlowWakeCallback | None = None,
    ) -> bool:
        """Ping the backend health route so a sleeping host starts before the upload.

        Any HTTP answer, error statuses included, means the backend is up.
        ``on_slow`` fires once if the ping is still pending after the notice
        delay. Failures are logged and swallowed.

        Returns:
            True if the backend answered, False otherwise.

        Raises:
            TransportCancelledError: the caller cancelled the warm-up.
        """
        loop = asyncio.get_running_loop()
        notice = loop.call_later(self._wake_notice_seconds, on_slow or _log_slow_wake)
        try:
            response = await self._transport.send(
                OutboundRequest(method="GET", path=self._health_path),
                self._warm_up_policy,
                cancel_token=cancel_token,
            )
        except FatalTransportError as exc:
            Log.debug(f"Backend awake (health answered {exc.status_code})")
            return True
        except TransientTransportError as exc:
            Log.warning(f"Backend warm-up failed, continuing: {exc}")
            return False
        finally:
            notice.cancel()
        Log.debug(f"Backend awake after {response.attempts} attempt(s)")
        return True

    async def _compress(self, source: SourceImage) -> CompressionResult:
        try:
            return await asyncio.to_thread(self._planner.plan, source, self._target_size_bytes)
        except DecodeError as exc:
            Log.warning(f"Could not transcode {source.filename}, sending original bytes: {exc}")
            return CompressionResult.passthrough(source, format_for_mime(source.mime_type))


def _log_slow_wake() -> None:
    Log.info("Server is starting, this can take up to a minute")


def _multipart(request: SubmissionRequest) -> list[MultipartPart]:
    parts: list[MultipartPart] = [
        ("frontFile", (request.front.filename, request.front.encoded_bytes, request.front.mime_type)),
    ]
    if request.back is not None:
        parts.append(
            ("backFile", (request.back.filename, request.back.encoded_bytes, request.back.mime_type))
        )
    parts.append(("pieceType", (None, request.declared_kind.encode("utf-8"), None)))
    parts.append(("userId", (None, request.subject_id.encode("utf-8"), None)))
    return parts


def build_orchestrator(
    settings: Settings,
    transport: ResilientTransport | None = None,
) -> UploadOrchestrator:
    """Build an UploadOrchestrator with all default collaborators."""
    if transport is None:
        transport = ResilientTransport(
            settings.backend_base_url,
            verify_ssl=settings.verify_ssl,
            bearer_token=settings.bearer_token,
        )
    base_policy = RetryPolicy.from_settings(settings)
    return UploadOrchestrator(
        planner=CompressionPlanner(),
        transport=transport,
        normalizer=ResponseNormalizer(settings.default_confidence_score),
        gate=NetworkGateFactory.create(settings),
        policy=base_policy.for_upload(settings.upload_timeout_seconds),
        upload_path=settings.upload_path,
        target_size_bytes=settings.target_size_bytes,
        max_combined_bytes=settings.max_combined_bytes,
        warm_up_policy=base_policy,
        health_path=settings.health_path,
        wake_notice_seconds=settings.wake_notice_seconds,
    )
