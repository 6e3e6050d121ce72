"""
Test Factories Module

Centralized factory functions for creating test objects: Discord fakes and
directory seeding.
"""

from .db_factories import (
    seed_admin,
    seed_application,
    seed_event,
)
from .discord_factories import (
    MEMBER_ROLE_ID,
    RESTRICTED_CHANNEL_IDS,
    SUPER_ADMIN_ID,
    FakeChannel,
    FakeGuild,
    FakeInteraction,
    FakeMember,
    FakeRole,
    FakeUser,
    make_channel,
    make_forbidden,
    make_guild,
    make_interaction,
    make_member,
    make_role,
    make_user,
)

__all__ = [
    "MEMBER_ROLE_ID",
    "RESTRICTED_CHANNEL_IDS",
    "SUPER_ADMIN_ID",
    "FakeChannel",
    "FakeGuild",
    "FakeInteraction",
    "FakeMember",
    "FakeRole",
    "FakeUser",
    "make_channel",
    "make_forbidden",
    "make_guild",
    "make_interaction",
    "make_member",
    "make_role",
    "make_user",
    "seed_admin",
    "seed_application",
    "seed_event",
]
