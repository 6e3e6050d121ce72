"""Permission and error guards applied to app command callbacks."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from helpers.decorators import guard_command, require_admin, require_super_admin
from helpers.error_messages import format_user_error
from services.privileges import PrivilegeDecision, PrivilegeSource
from tests.factories import SUPER_ADMIN_ID, make_interaction, make_member
from tests.factories.db_factories import seed_admin
from utils.types import unavailable


class FakeCog:
    def __init__(self, services) -> None:
        self.services = services
        self.calls = 0

    @require_admin()
    async def admin_only(self, interaction) -> str:
        self.calls += 1
        return "ran"

    @require_super_admin()
    async def super_only(self, interaction) -> str:
        self.calls += 1
        return "ran"

    @guard_command
    async def explodes(self, interaction) -> None:
        raise ValueError("kaboom")


@pytest.fixture
def cog(services) -> FakeCog:
    return FakeCog(services)


@pytest.mark.asyncio
async def test_admin_denied_for_regular_member(cog) -> None:
    interaction = make_interaction(make_member(42))

    assert await cog.admin_only(interaction) is None
    assert cog.calls == 0
    assert interaction.last_content == format_user_error("PERMISSION")


@pytest.mark.asyncio
async def test_admin_granted_by_native_permission(cog) -> None:
    interaction = make_interaction(make_member(42, administrator=True))
    assert await cog.admin_only(interaction) == "ran"
    assert interaction.sent == []


@pytest.mark.asyncio
async def test_admin_granted_by_directory_record(cog) -> None:
    await seed_admin(42)
    assert await cog.admin_only(make_interaction(make_member(42))) == "ran"


@pytest.mark.asyncio
async def test_native_admin_is_not_super_admin(cog) -> None:
    interaction = make_interaction(make_member(42, administrator=True))

    assert await cog.super_only(interaction) is None
    assert interaction.last_content == format_user_error("SUPER_ADMIN_REQUIRED")


@pytest.mark.asyncio
async def test_allow_listed_super_admin(cog) -> None:
    assert await cog.super_only(make_interaction(make_member(SUPER_ADMIN_ID))) == "ran"


@pytest.mark.asyncio
async def test_directory_outage_fails_closed_with_temp_error() -> None:
    resolver = SimpleNamespace(
        check_admin=AsyncMock(
            return_value=PrivilegeDecision(False, PrivilegeSource.NONE, unavailable("locked"))
        )
    )
    cog = FakeCog(SimpleNamespace(privileges=resolver))
    interaction = make_interaction(make_member(42))

    assert await cog.admin_only(interaction) is None
    assert cog.calls == 0
    assert interaction.last_content == format_user_error("DB_TEMP_ERROR")


@pytest.mark.asyncio
async def test_missing_services_denies() -> None:
    cog = FakeCog(None)
    interaction = make_interaction(make_member(42, administrator=True))

    assert await cog.admin_only(interaction) is None
    assert interaction.last_content == format_user_error("DB_TEMP_ERROR")


@pytest.mark.asyncio
async def test_guard_command_replies_generic_error(cog) -> None:
    interaction = make_interaction(make_member(42))
    await interaction.response.defer(ephemeral=True)

    assert await cog.explodes(interaction) is None
    assert interaction.followup.messages[-1]["content"] == format_user_error("UNKNOWN")
    assert "kaboom" not in interaction.last_content
