# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for retry with exponential backoff
"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from binstash.services.retry import RetryConfig, execute_with_retry, is_transient


def status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.com")
    return httpx.HTTPStatusError("error", request=request, response=httpx.Response(code, request=request))


class TestIsTransient:
    """Test is_transient"""

    @pytest.mark.parametrize("code,expected", [(500, True), (503, True), (429, True), (404, False), (403, False)])
    def test_status_codes(self, code, expected):
        assert is_transient(status_error(code)) is expected

    def test_transport_errors(self):
        assert is_transient(httpx.ConnectError("refused"))
        assert not is_transient(ValueError("nope"))


class TestExecuteWithRetry:
    """Test execute_with_retry"""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        operation = AsyncMock(side_effect=[httpx.ConnectError("refused"), status_error(502), "ok"])
        config = RetryConfig(max_retries=3, retry_delay=1.0, backoff_multiplier=2.0)

        with patch("asyncio.sleep", AsyncMock()) as sleep:
            result = await execute_with_retry(operation, "fetch", config, "arg", key="value")

        assert result == "ok"
        assert operation.await_count == 3
        operation.assert_awaited_with("arg", key="value")
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        operation = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

        with patch("asyncio.sleep", AsyncMock()):
            with pytest.raises(httpx.ReadTimeout):
                await execute_with_retry(operation, "fetch", RetryConfig(max_retries=2))

        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_delay_capped(self):
        operation = AsyncMock(side_effect=[httpx.ConnectError("x")] * 4 + ["ok"])
        config = RetryConfig(max_retries=4, retry_delay=10.0, backoff_multiplier=3.0, max_retry_delay=20.0)

        with patch("asyncio.sleep", AsyncMock()) as sleep:
            await execute_with_retry(operation, "fetch", config)

        assert [c.args[0] for c in sleep.await_args_list] == [10.0, 20.0, 20.0, 20.0]

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        operation = AsyncMock(side_effect=status_error(404))

        with pytest.raises(httpx.HTTPStatusError):
            await execute_with_retry(operation, "fetch", RetryConfig(max_retries=5))

        assert operation.await_count == 1
