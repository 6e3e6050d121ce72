"""Rate-limited Discord call wrappers."""

import asyncio
from unittest.mock import AsyncMock

import aiohttp
import pytest

from helpers.discord_api import get_api_limiter, send_dm
from tests.factories import make_member


@pytest.mark.asyncio
async def test_limiter_is_shared_within_a_loop() -> None:
    assert get_api_limiter() is get_api_limiter()


def test_limiter_is_rebuilt_for_a_new_loop() -> None:
    async def current():
        limiter = get_api_limiter()
        async with limiter:
            pass
        return limiter

    first = asyncio.run(current())
    second = asyncio.run(current())

    assert first is not second


@pytest.mark.asyncio
async def test_send_dm_contains_transport_errors() -> None:
    member = make_member(42)
    member.send = AsyncMock(side_effect=aiohttp.ClientOSError())

    assert await send_dm(member, "hello") is False


@pytest.mark.asyncio
async def test_send_dm_closed_dms() -> None:
    member = make_member(42, dm_closed=True)
    assert await send_dm(member, "hello") is False
    assert member._dm_messages == []
