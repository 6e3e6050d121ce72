"""
Database Package

Member directory access layer for the bot.
"""

from .database import Database
from .models import (
    DiscordAdmin,
    Event,
    EventRegistration,
    MembershipApplication,
    normalize_email,
    utcnow_iso,
)
from .repository import (
    AdminRepository,
    BaseRepository,
    EventRepository,
    MembershipRepository,
)
from .schema import init_schema

__all__ = [
    "AdminRepository",
    "BaseRepository",
    "Database",
    "DiscordAdmin",
    "Event",
    "EventRegistration",
    "EventRepository",
    "MembershipApplication",
    "MembershipRepository",
    "init_schema",
    "normalize_email",
    "utcnow_iso",
]
