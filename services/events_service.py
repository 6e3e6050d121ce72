"""
Society events and member registrations.

Only verified members (a Discord account linked to an application) can
register. Registration is refused for unknown or closed events, for events
that have reached capacity and for duplicate registrations.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import TYPE_CHECKING

from services.base import BaseService
from services.db.models import (
    EVENT_OPEN,
    Event,
    EventRegistration,
    utcnow_iso,
)
from services.db.repository import EventRepository, MembershipRepository
from utils.types import Err, ErrorKind, Ok, Result, rejected

if TYPE_CHECKING:
    import discord


class EventsService(BaseService):
    def __init__(
        self,
        events: EventRepository | None = None,
        applications: MembershipRepository | None = None,
    ) -> None:
        super().__init__("events")
        self.events = events or EventRepository()
        self.applications = applications or MembershipRepository()

    async def _initialize_impl(self) -> None:
        pass

    async def list_upcoming(
        self, today: date | None = None, limit: int = 10
    ) -> Result[list[Event]]:
        """Open events dated today or later, soonest first."""
        today = today or date.today()
        listed = await self.events.list_by_status(EVENT_OPEN)
        if isinstance(listed, Err):
            return listed
        # ISO-8601 dates compare correctly as strings
        upcoming = [e for e in listed.value if e.date[:10] >= today.isoformat()]
        return Ok(upcoming[:limit])

    async def register(
        self, member: discord.abc.User, slug: str
    ) -> Result[tuple[Event, EventRegistration]]:
        slug = slug.strip().lower()
        extra = {"user_id": str(member.id)}

        linked = await self.applications.find_by_discord_id(member.id)
        if isinstance(linked, Err):
            return linked
        application = linked.value
        if application is None or not application.is_approved:
            return rejected(ErrorKind.PERMISSION, "NOT_LINKED", "Member is not verified")

        found = await self.events.get_by_slug(slug)
        if isinstance(found, Err):
            return found
        event = found.value
        if event is None:
            return rejected(ErrorKind.VALIDATION, "EVENT_NOT_FOUND", f"Unknown event {slug}")
        if not event.is_open:
            return rejected(ErrorKind.CONFLICT, "EVENT_CLOSED", f"Event {slug} is closed")

        existing = await self.events.find_registration(slug, member.id)
        if isinstance(existing, Err):
            return existing
        if existing.value is not None:
            return rejected(ErrorKind.CONFLICT, "ALREADY_REGISTERED", "Already registered")

        if event.capacity is not None:
            counted = await self.events.count_registrations(slug)
            if isinstance(counted, Err):
                return counted
            if counted.value >= event.capacity:
                return rejected(ErrorKind.CONFLICT, "EVENT_FULL", f"Event {slug} is full")

        registration = EventRegistration(
            id="",
            event_slug=slug,
            email=application.email,
            discord_user_id=str(member.id),
            registered_at=utcnow_iso(),
        )
        inserted = await self.events.add_registration(registration)
        if isinstance(inserted, Err):
            return inserted

        self.logger.info("Registered for event %s", slug, extra=extra)
        return Ok((event, replace(registration, id=inserted.value)))

    async def registrations_for_member(
        self, member: discord.abc.User
    ) -> Result[list[EventRegistration]]:
        return await self.events.registrations_for_user(member.id)

    async def registrations_for_event(
        self, slug: str
    ) -> Result[list[EventRegistration]]:
        slug = slug.strip().lower()
        found = await self.events.get_by_slug(slug)
        if isinstance(found, Err):
            return found
        if found.value is None:
            return rejected(ErrorKind.VALIDATION, "EVENT_NOT_FOUND", f"Unknown event {slug}")
        return await self.events.registrations_for_event(slug)
