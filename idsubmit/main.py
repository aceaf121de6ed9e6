import argparse
import asyncio
import contextlib
import json
import signal
import sys
from pathlib import Path

from idsubmit.config.settings import Settings
from idsubmit.imaging.models import SourceImage
from idsubmit.logging.logger import Log
from idsubmit.network.gate import NetworkGateFactory
from idsubmit.normalization.exceptions import NormalizationError
from idsubmit.submission.exceptions import PreconditionError
from idsubmit.submission.orchestrator import build_orchestrator
from idsubmit.submission.session import SessionContext
from idsubmit.transport.cancellation import CancellationToken
from idsubmit.transport.exceptions import TransportCancelledError, TransportError
from idsubmit.verification.status import StatusClassifier

EXIT_OK = 0
EXIT_PRECONDITION = 2
EXIT_TRANSPORT = 3
EXIT_MALFORMED = 4
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idsubmit",
        description="Submit an identity document for automated verification.",
    )
    parser.add_argument("front", type=Path, help="front side image (PNG, JPEG) or PDF")
    parser.add_argument("--back", type=Path, default=None, help="optional back side")
    parser.add_argument("--kind", default=None, help="document kind, e.g. passeport, cni, permis")
    parser.add_argument("--subject-id", default=None, help="overrides SUBJECT_ID")
    parser.add_argument("--token", default=None, help="bearer token, overrides BEARER_TOKEN")
    parser.add_argument(
        "--force",
        action="store_true",
        help="send even when the network looks offline",
    )
    parser.add_argument(
        "--wake",
        action="store_true",
        help="ping the backend health route before uploading",
    )
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Submit the document and print the result; return the process exit code."""
    if not args.force and not NetworkGateFactory.create(settings).is_transmission_advisable():
        Log.error("Network is offline; use --force to try anyway")
        return EXIT_PRECONDITION

    session = SessionContext(
        subject_id=args.subject_id or settings.subject_id,
        bearer_token=args.token or settings.bearer_token,
    )
    try:
        front = SourceImage.from_path(args.front)
        back = SourceImage.from_path(args.back) if args.back is not None else None
    except OSError as exc:
        Log.error(f"Cannot read document: {exc}")
        return EXIT_PRECONDITION

    token = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel, "interrupted")
    except NotImplementedError:
        Log.debug("SIGINT handler not supported on this platform")

    orchestrator = build_orchestrator(settings)
    try:
        if args.wake:
            await orchestrator.warm_up(cancel_token=token)
        result = await orchestrator.submit(
            front,
            back,
            declared_kind=args.kind,
            session=session,
            cancel_token=token,
            on_retry=lambda retry, delay: Log.info(
                f"Still trying (retry {retry}, next attempt in {delay:.1f}s)"
            ),
        )
    except PreconditionError as exc:
        Log.error(f"Submission rejected: {exc}")
        return EXIT_PRECONDITION
    except TransportCancelledError:
        Log.warning("Submission cancelled")
        return EXIT_CANCELLED
    except TransportError as exc:
        Log.error(f"Upload failed: {exc}")
        return EXIT_TRANSPORT
    except NormalizationError as exc:
        Log.error(f"Unusable backend response: {exc}")
        return EXIT_MALFORMED
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)

    output = {**result.to_dict(), "status": StatusClassifier().classify(result).value}
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse args -> load settings -> submit."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
