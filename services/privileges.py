"""
Privilege resolution for admin and super-admin commands.

Sources are checked in order and short-circuit:
    1. Discord administrator permission (admin only, never super-admin)
    2. Static super-admin allow-list (SUPER_ADMIN_IDS)
    3. Active record in the discordAdmins collection

A directory failure never grants access. The failure is logged and carried on
the returned decision so callers can tell "denied" from "could not check".
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from services.db.repository import AdminRepository
from utils.logging import get_logger
from utils.types import Err

if TYPE_CHECKING:
    import discord

logger = get_logger(__name__)


class PrivilegeSource(Enum):
    NATIVE = "native"
    ALLOW_LIST = "allow_list"
    DIRECTORY = "directory"
    NONE = "none"


@dataclass(frozen=True)
class PrivilegeDecision:
    granted: bool
    source: PrivilegeSource
    error: Err | None = None

    def __bool__(self) -> bool:
        return self.granted

    @property
    def unavailable(self) -> bool:
        """True when the check was denied because the directory could not be read."""
        return not self.granted and self.error is not None


_DENIED = PrivilegeDecision(False, PrivilegeSource.NONE)


def has_native_admin(actor: discord.abc.User) -> bool:
    """Discord's own administrator permission, only present on guild members."""
    permissions = getattr(actor, "guild_permissions", None)
    return bool(getattr(permissions, "administrator", False))


class PrivilegeResolver:
    """Answers is_admin / is_super_admin for a Discord user."""

    def __init__(
        self,
        super_admin_ids: Iterable[int],
        admins: AdminRepository | None = None,
    ) -> None:
        self.super_admin_ids = frozenset(int(i) for i in super_admin_ids)
        self.admins = admins or AdminRepository()

    def in_allow_list(self, user_id: int) -> bool:
        return int(user_id) in self.super_admin_ids

    async def check_admin(self, actor: discord.abc.User) -> PrivilegeDecision:
        if has_native_admin(actor):
            return PrivilegeDecision(True, PrivilegeSource.NATIVE)
        if self.in_allow_list(actor.id):
            return PrivilegeDecision(True, PrivilegeSource.ALLOW_LIST)

        result = await self.admins.find_active(actor.id)
        if isinstance(result, Err):
            logger.warning(
                "Admin check failed closed: %s",
                result.message,
                extra={"user_id": str(actor.id)},
            )
            return PrivilegeDecision(False, PrivilegeSource.NONE, result)
        if result.value is not None:
            return PrivilegeDecision(True, PrivilegeSource.DIRECTORY)
        return _DENIED

    async def check_super_admin(self, actor: discord.abc.User) -> PrivilegeDecision:
        if self.in_allow_list(actor.id):
            return PrivilegeDecision(True, PrivilegeSource.ALLOW_LIST)

        result = await self.admins.find_active(actor.id)
        if isinstance(result, Err):
            logger.warning(
                "Super-admin check failed closed: %s",
                result.message,
                extra={"user_id": str(actor.id)},
            )
            return PrivilegeDecision(False, PrivilegeSource.NONE, result)
        record = result.value
        if record is not None and record.is_super_admin:
            return PrivilegeDecision(True, PrivilegeSource.DIRECTORY)
        return _DENIED

    async def is_admin(self, actor: discord.abc.User) -> bool:
        return (await self.check_admin(actor)).granted

    async def is_super_admin(self, actor: discord.abc.User) -> bool:
        return (await self.check_super_admin(actor)).granted
