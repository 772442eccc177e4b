"""
Unit tests for CancellationToken.
"""

import asyncio

import pytest
from unittest.mock import Mock

from huginn.mcp.cancellation import CancellationToken
from huginn.utils.errors import ToolCancelledError


@pytest.mark.unit
class TestCancellationToken:
    """Test CancellationToken."""

    def test_starts_active(self):
        token = CancellationToken()

        assert not token.is_cancelled
        token.raise_if_cancelled()

    def test_cancel_notifies_subscribers_once(self):
        token = CancellationToken()
        callback = Mock()
        token.on_cancel(callback)

        token.cancel()
        token.cancel()

        assert token.is_cancelled
        callback.assert_called_once_with()

    def test_late_subscriber_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        callback = Mock()

        token.on_cancel(callback)

        callback.assert_called_once_with()

    def test_failing_callback_does_not_block_others(self):
        token = CancellationToken()
        second = Mock()
        token.on_cancel(Mock(side_effect=RuntimeError("bad callback")))
        token.on_cancel(second)

        token.cancel()

        second.assert_called_once_with()

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(ToolCancelledError):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_wait_returns_after_cancel(self):
        token = CancellationToken()
        waiter = asyncio.ensure_future(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()

        token.cancel()
        await asyncio.wait_for(waiter, timeout=1)

    @pytest.mark.asyncio
    async def test_wait_on_cancelled_token_returns_immediately(self):
        token = CancellationToken()
        token.cancel()

        await asyncio.wait_for(token.wait(), timeout=1)
