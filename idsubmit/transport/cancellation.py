import asyncio

from idsubmit.logging.logger import Log


class CancellationToken:
    """Single cooperative cancellation signal for one submission.

    The same token aborts the in-flight request and skips any backoff wait.
    Call ``cancel`` from the event loop thread (e.g. a loop signal handler).
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if not self._event.is_set():
            self._reason = reason
            Log.info(f"Cancellation requested: {reason}")
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep up to ``delay`` seconds; return True if cancelled meanwhile."""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True
