"""
Service Container

The application context: one instance is built at startup and handed to every
cog. It owns the settings, the directory, the privilege resolver, the domain
services and the daily post scheduler with its publish guard.
"""

from typing import TYPE_CHECKING, Optional

from helpers.http_helper import HTTPClient
from helpers.provisioning import AccessProvisioner
from services.db.database import Database
from services.db.repository import AdminRepository, EventRepository, MembershipRepository
from utils.logging import get_logger

from .admin_service import AdminService
from .base import BaseService
from .daily_content import AstronomyContentService
from .daily_scheduler import DailyPostScheduler, PublishGuard
from .events_service import EventsService
from .privileges import PrivilegeResolver
from .verification_service import VerificationService

if TYPE_CHECKING:
    import discord

    from config.settings import BotSettings


class ServiceContainer:
    """
    Central container for the bot's services.

    Handles construction order and lifecycle; accessing a service before
    ``initialize`` raises RuntimeError.
    """

    def __init__(
        self, settings: "BotSettings", bot: Optional["discord.Client"] = None
    ) -> None:
        self.logger = get_logger("services.container")
        self.settings = settings
        self.bot = bot
        self._http: HTTPClient | None = None
        self._privileges: PrivilegeResolver | None = None
        self._verification: VerificationService | None = None
        self._admin: AdminService | None = None
        self._events: EventsService | None = None
        self._content: AstronomyContentService | None = None
        self._scheduler: DailyPostScheduler | None = None
        self._initialized = False

    @property
    def http(self) -> HTTPClient:
        if self._http is None:
            raise RuntimeError("HTTPClient not initialized")
        return self._http

    @property
    def privileges(self) -> PrivilegeResolver:
        if self._privileges is None:
            raise RuntimeError("PrivilegeResolver not initialized")
        return self._privileges

    @property
    def verification(self) -> VerificationService:
        if self._verification is None:
            raise RuntimeError("VerificationService not initialized")
        return self._verification

    @property
    def admin(self) -> AdminService:
        if self._admin is None:
            raise RuntimeError("AdminService not initialized")
        return self._admin

    @property
    def events(self) -> EventsService:
        if self._events is None:
            raise RuntimeError("EventsService not initialized")
        return self._events

    @property
    def content(self) -> AstronomyContentService:
        if self._content is None:
            raise RuntimeError("AstronomyContentService not initialized")
        return self._content

    @property
    def scheduler(self) -> DailyPostScheduler:
        if self._scheduler is None:
            raise RuntimeError("DailyPostScheduler not initialized")
        return self._scheduler

    def get_all_services(self) -> list[BaseService]:
        return [
            s
            for s in (self._verification, self._admin, self._events, self._content)
            if s is not None
        ]

    async def initialize(self) -> None:
        """Initialize all services in dependency order."""
        if self._initialized:
            self.logger.warning("ServiceContainer already initialized")
            return

        settings = self.settings
        try:
            self.logger.info("Initializing services")

            await Database.initialize(settings.directory_path)

            self._http = HTTPClient(
                timeout=settings.http_timeout, user_agent=settings.user_agent
            )

            admins = AdminRepository()
            applications = MembershipRepository()

            self._privileges = PrivilegeResolver(settings.super_admin_ids, admins)

            provisioner = AccessProvisioner(
                settings.member_role_id, settings.restricted_channel_ids
            )
            self._verification = VerificationService(provisioner, applications)
            self._admin = AdminService(self._privileges, admins, applications)
            self._events = EventsService(EventRepository(), applications)
            self._content = AstronomyContentService(settings, self._http, self.bot)

            for service in self.get_all_services():
                await service.initialize()

            guard = PublishGuard(
                min_interval=settings.schedule.min_interval_minutes * 60
            )
            self._scheduler = DailyPostScheduler(
                settings, self._content, guard, self.bot
            )

            self._initialized = True
            self.logger.info("All services initialized successfully")

        except Exception as e:
            self.logger.exception("Failed to initialize services", exc_info=e)
            raise

    async def cleanup(self) -> None:
        """Clean up all services in reverse dependency order."""
        if not self._initialized:
            return

        self.logger.info("Cleaning up services")

        if self._scheduler:
            self._scheduler.stop()
            self._scheduler = None

        for service in reversed(self.get_all_services()):
            await service.shutdown()
        self._content = self._events = self._admin = self._verification = None
        self._privileges = None

        if self._http:
            await self._http.close()
            self._http = None

        await Database.close()

        self._initialized = False
        self.logger.info("Services cleaned up")
