"""
Services package for the Discord bot.

Business logic behind the slash commands and the daily post: privilege
resolution, membership verification, admin grants, events and the scheduled
astronomy update. The ServiceContainer wires them together.
"""

from .admin_service import AdminService
from .base import BaseService
from .daily_content import AstronomyContentService
from .daily_scheduler import DailyPostScheduler, PublishGuard
from .events_service import EventsService
from .privileges import PrivilegeDecision, PrivilegeResolver
from .service_container import ServiceContainer
from .verification_service import VerificationService

__all__ = [
    "AdminService",
    "AstronomyContentService",
    "BaseService",
    "DailyPostScheduler",
    "EventsService",
    "PrivilegeDecision",
    "PrivilegeResolver",
    "PublishGuard",
    "ServiceContainer",
    "VerificationService",
]
