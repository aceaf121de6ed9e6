import asyncio

import pytest

from idsubmit.transport.cancellation import CancellationToken


class TestCancellationToken:
    def test_initially_not_cancelled(self) -> None:
        token = CancellationToken()
        assert token.cancelled is False
        assert token.reason == ""

    def test_cancel_records_first_reason(self) -> None:
        token = CancellationToken()
        token.cancel("user left the page")
        token.cancel("second call")
        assert token.cancelled is True
        assert token.reason == "user left the page"

    @pytest.mark.asyncio
    async def test_sleep_completes_without_cancel(self) -> None:
        assert await CancellationToken().sleep(0.01) is False

    @pytest.mark.asyncio
    async def test_sleep_returns_early_on_cancel(self) -> None:
        token = CancellationToken()
        loop = asyncio.get_running_loop()
        loop.call_later(0.02, token.cancel)
        started = loop.time()
        assert await token.sleep(5.0) is True
        assert loop.time() - started < 1.0

    @pytest.mark.asyncio
    async def test_sleep_after_cancel_is_immediate(self) -> None:
        token = CancellationToken()
        token.cancel()
        assert await token.sleep(5.0) is True
