"""
Member access provisioning.

Grants the member role and the per-member overwrite on each restricted channel,
then sends the welcome DM. Every step is safe to repeat: a grant the member
already holds is skipped, and a failing step is logged without stopping the
remaining ones. Nothing is rolled back.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import discord

from helpers.discord_api import add_roles, send_dm, set_channel_permissions
from helpers.embeds import build_welcome_embed
from utils.logging import get_logger

if TYPE_CHECKING:
    from services.db.models import MembershipApplication

logger = get_logger(__name__)

MEMBER_CHANNEL_PERMISSIONS = {
    "view_channel": True,
    "send_messages": True,
    "read_message_history": True,
}
GRANT_REASON = "Membership verified"


@dataclass(frozen=True)
class ProvisioningGap:
    """Grants a member is currently missing."""

    missing_role: bool = False
    missing_channel_ids: tuple[int, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.missing_role and not self.missing_channel_ids


@dataclass
class ProvisioningReport:
    role_granted: bool = False
    channels_granted: list[int] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def has_channel_access(channel: discord.abc.GuildChannel, member: discord.Member) -> bool:
    overwrite = channel.overwrites_for(member)
    return all(
        getattr(overwrite, name) is value
        for name, value in MEMBER_CHANNEL_PERMISSIONS.items()
    )


class AccessProvisioner:
    """Applies the member role and restricted-channel access for verified members."""

    def __init__(
        self,
        member_role_id: int | None,
        restricted_channel_ids: Iterable[int],
    ) -> None:
        self.member_role_id = member_role_id
        self.restricted_channel_ids = tuple(restricted_channel_ids)

    def _member_role(self, guild: discord.Guild) -> discord.Role | None:
        if self.member_role_id is None:
            return None
        role = guild.get_role(self.member_role_id)
        if role is None:
            logger.warning(
                "Member role %s not found in guild",
                self.member_role_id,
                extra={"guild_id": str(guild.id)},
            )
        return role

    def _restricted_channels(
        self, guild: discord.Guild
    ) -> list[discord.abc.GuildChannel]:
        channels = []
        for channel_id in self.restricted_channel_ids:
            channel = guild.get_channel(channel_id)
            if channel is None:
                logger.warning(
                    "Restricted channel %s not found in guild",
                    channel_id,
                    extra={"guild_id": str(guild.id), "channel_id": str(channel_id)},
                )
                continue
            channels.append(channel)
        return channels

    def inspect(self, member: discord.Member) -> ProvisioningGap:
        """
        Report which configured grants the member lacks.

        Grants that cannot be resolved in the guild (unset or deleted role or
        channel) are not counted as missing.
        """
        role = self._member_role(member.guild)
        missing_role = role is not None and role not in member.roles
        missing_channels = tuple(
            channel.id
            for channel in self._restricted_channels(member.guild)
            if not has_channel_access(channel, member)
        )
        return ProvisioningGap(missing_role, missing_channels)

    async def provision(self, member: discord.Member) -> ProvisioningReport:
        """Apply every missing grant, one at a time, each isolated from the others."""
        report = ProvisioningReport()
        extra = {"user_id": str(member.id), "guild_id": str(member.guild.id)}

        role = self._member_role(member.guild)
        if role is not None and role not in member.roles:
            if await add_roles(member, role, reason=GRANT_REASON):
                report.role_granted = True
            else:
                report.failed.append(f"role:{role.id}")

        for channel in self._restricted_channels(member.guild):
            if has_channel_access(channel, member):
                continue
            # Merge into the existing overwrite; other per-member settings stay
            overwrite = channel.overwrites_for(member)
            overwrite.update(**MEMBER_CHANNEL_PERMISSIONS)
            granted = await set_channel_permissions(
                channel, member, overwrite, reason=GRANT_REASON
            )
            if granted:
                report.channels_granted.append(channel.id)
            else:
                report.failed.append(f"channel:{channel.id}")

        if report.failed:
            logger.warning(
                "Provisioning incomplete: %s", ", ".join(report.failed), extra=extra
            )
        else:
            logger.info(
                "Provisioning applied (role=%s channels=%s)",
                report.role_granted,
                len(report.channels_granted),
                extra=extra,
            )
        return report

    async def send_welcome(
        self, member: discord.Member, application: MembershipApplication
    ) -> bool:
        embed = build_welcome_embed(member, application)
        sent = await send_dm(member, embed=embed)
        if not sent:
            logger.info(
                "Welcome DM not delivered", extra={"user_id": str(member.id)}
            )
        return sent
