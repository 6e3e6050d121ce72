"""
Discord Mock Factories

Provides factory functions and fake classes for Discord objects.
Use these to create consistent, configurable test doubles without hitting Discord's API.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import discord

SUPER_ADMIN_ID = 1000
MEMBER_ROLE_ID = 999111222
RESTRICTED_CHANNEL_IDS = (555000001, 555000002)


def make_forbidden() -> discord.Forbidden:
    """A real discord.Forbidden built from a fake HTTP response."""
    response = MagicMock(status=403, reason="Forbidden")
    return discord.Forbidden(response, "Missing Permissions")


class FakeUser:
    """Fake Discord User for testing."""

    def __init__(
        self,
        user_id: int = 123456789,
        name: str = "TestUser",
        display_name: str | None = None,
        bot: bool = False,
        dm_closed: bool = False,
    ) -> None:
        self.id = user_id
        self.name = name
        self.display_name = display_name or name
        self.bot = bot
        self.mention = f"<@{user_id}>"
        self.dm_closed = dm_closed
        self._dm_messages: list[Any] = []

    async def send(self, content: str | None = None, **kwargs: Any) -> None:
        """Mock DM send - stores messages for assertion."""
        if self.dm_closed:
            raise make_forbidden()
        self._dm_messages.append({"content": content, **kwargs})

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<FakeUser id={self.id} name={self.name!r}>"


class FakeRole:
    """Fake Discord Role for testing."""

    def __init__(self, role_id: int = 999111222, name: str = "Member") -> None:
        self.id = role_id
        self.name = name
        self.mention = f"<@&{role_id}>"

    def __repr__(self) -> str:
        return f"<FakeRole id={self.id} name={self.name!r}>"


class FakeChannel:
    """Fake Discord TextChannel tracking per-target permission overwrites."""

    def __init__(
        self,
        channel_id: int = 555666777,
        name: str = "members-only",
        guild: FakeGuild | None = None,
        fail_set_permissions: bool = False,
    ) -> None:
        self.id = channel_id
        self.name = name
        self.guild = guild
        self.mention = f"<#{channel_id}>"
        self.fail_set_permissions = fail_set_permissions
        self._overwrites: dict[int, discord.PermissionOverwrite] = {}
        self._permission_calls: list[dict[str, Any]] = []
        self._sent_messages: list[dict[str, Any]] = []

    def overwrites_for(self, target: Any) -> discord.PermissionOverwrite:
        current = self._overwrites.get(target.id)
        if current is None:
            return discord.PermissionOverwrite()
        return discord.PermissionOverwrite(**dict(current))

    async def set_permissions(
        self,
        target: Any,
        *,
        overwrite: discord.PermissionOverwrite | None = None,
        reason: str | None = None,
        **permissions: Any,
    ) -> None:
        """Replace the target's overwrite, as discord.py does."""
        if overwrite is None:
            overwrite = discord.PermissionOverwrite(**permissions)
        self._permission_calls.append({"target_id": target.id, "reason": reason, **dict(overwrite)})
        if self.fail_set_permissions:
            raise make_forbidden()
        self._overwrites[target.id] = overwrite

    def seed_overwrite(self, target: Any, **permissions: Any) -> None:
        """Pre-existing overwrite, as if a moderator had set it."""
        self._overwrites[target.id] = discord.PermissionOverwrite(**permissions)

    async def send(self, content: str | None = None, **kwargs: Any) -> None:
        self._sent_messages.append({"content": content, **kwargs})

    def __repr__(self) -> str:
        return f"<FakeChannel id={self.id} name={self.name!r}>"


class FakeGuild:
    """Fake Discord Guild resolving roles and channels by id."""

    def __init__(
        self,
        guild_id: int = 123,
        name: str = "Manipur Astronomical Society",
        roles: list[FakeRole] | None = None,
        channels: list[FakeChannel] | None = None,
    ) -> None:
        self.id = guild_id
        self.name = name
        self.roles = roles or []
        self.channels = channels or []
        for channel in self.channels:
            channel.guild = self

    def get_role(self, role_id: int) -> FakeRole | None:
        return next((r for r in self.roles if r.id == role_id), None)

    def get_channel(self, channel_id: int) -> FakeChannel | None:
        return next((c for c in self.channels if c.id == channel_id), None)

    def __repr__(self) -> str:
        return f"<FakeGuild id={self.id} name={self.name!r}>"


class FakeMember(FakeUser):
    """Fake Discord Member (User in a Guild context) for testing."""

    def __init__(
        self,
        user_id: int = 123456789,
        name: str = "TestMember",
        display_name: str | None = None,
        roles: list[FakeRole] | None = None,
        guild: FakeGuild | None = None,
        administrator: bool = False,
        fail_add_roles: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(user_id=user_id, name=name, display_name=display_name, **kwargs)
        self.roles = roles or []
        self.guild = guild or FakeGuild()
        self.guild_permissions = SimpleNamespace(administrator=administrator)
        self.fail_add_roles = fail_add_roles
        self._added_roles: list[FakeRole] = []

    async def add_roles(self, *roles: FakeRole, reason: str | None = None) -> None:
        """Mock adding roles - tracks for assertion."""
        if self.fail_add_roles:
            raise make_forbidden()
        self._added_roles.extend(roles)
        self.roles.extend(roles)

    def __repr__(self) -> str:
        return f"<FakeMember id={self.id} name={self.name!r} guild={getattr(self.guild, 'id', None)}>"


class FakeResponse:
    def __init__(self) -> None:
        self._is_done = False
        self.messages: list[dict[str, Any]] = []

    def is_done(self) -> bool:
        return self._is_done

    async def send_message(self, content: str | None = None, **kwargs: Any) -> None:
        self._is_done = True
        self.messages.append({"content": content, **kwargs})

    async def defer(self, *args: Any, **kwargs: Any) -> None:
        self._is_done = True


class FakeFollowup:
    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def send(self, content: str | None = None, **kwargs: Any) -> None:
        self.messages.append({"content": content, **kwargs})


class FakeInteraction:
    """Fake Interaction recording everything sent back to the user."""

    def __init__(self, user: FakeUser | None = None, guild: FakeGuild | None = None) -> None:
        self.user = user or FakeMember()
        self.guild = guild or getattr(self.user, "guild", None)
        self.channel = None
        self.command = SimpleNamespace(qualified_name="test-command")
        self.response = FakeResponse()
        self.followup = FakeFollowup()

    @property
    def sent(self) -> list[dict[str, Any]]:
        """All replies in order, whether sent as the response or a followup."""
        return self.response.messages + self.followup.messages

    @property
    def last_content(self) -> str | None:
        return self.sent[-1].get("content") if self.sent else None


def make_user(user_id: int = 123456789, name: str = "TestUser", **kwargs: Any) -> FakeUser:
    return FakeUser(user_id=user_id, name=name, **kwargs)


def make_role(role_id: int = 999111222, name: str = "Member") -> FakeRole:
    return FakeRole(role_id=role_id, name=name)


def make_channel(channel_id: int = 555666777, name: str = "members-only", **kwargs: Any) -> FakeChannel:
    return FakeChannel(channel_id=channel_id, name=name, **kwargs)


def make_guild(
    guild_id: int = 123,
    roles: list[FakeRole] | None = None,
    channels: list[FakeChannel] | None = None,
) -> FakeGuild:
    return FakeGuild(guild_id=guild_id, roles=roles, channels=channels)


def make_member(
    user_id: int = 123456789,
    name: str = "TestMember",
    guild: FakeGuild | None = None,
    **kwargs: Any,
) -> FakeMember:
    """
    Create a FakeMember.

    Examples:
        member = make_member(42, guild=guild, administrator=True)
    """
    return FakeMember(user_id=user_id, name=name, guild=guild, **kwargs)


def make_interaction(user: FakeUser | None = None, guild: FakeGuild | None = None) -> FakeInteraction:
    return FakeInteraction(user=user, guild=guild)
