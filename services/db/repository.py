"""
Repositories over the directory collections.

Every public method returns a ``Result``: ``Ok`` with the record(s) or ``Err``
with ``ErrorKind.UNAVAILABLE`` when the directory could not be reached. Callers
never see a raw aiosqlite exception and never confuse "not found" (``Ok(None)``)
with "could not look" (``Err``).

Usage:
    result = await MembershipRepository().find_by_email("a@example.org")
    if not result.ok:
        ...  # directory unavailable
    application = result.value
"""

from __future__ import annotations

import sqlite3
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from utils.errors import DirectoryError
from utils.logging import get_logger
from utils.types import Ok, Result, unavailable

from .database import Database
from .models import (
    ADMIN_ACTIVE,
    APPLICATION_APPROVED,
    REGISTRATION_REGISTERED,
    DiscordAdmin,
    Event,
    EventRegistration,
    MembershipApplication,
    normalize_email,
)
from .schema import (
    DISCORD_ADMINS,
    EVENT_REGISTRATIONS,
    EVENTS,
    MEMBERSHIP_APPLICATIONS,
)

logger = get_logger(__name__)

T = TypeVar("T")

# aiosqlite re-exports sqlite3's exception hierarchy
_DIRECTORY_FAILURES = (sqlite3.Error, OSError, DirectoryError)


class BaseRepository:
    """
    Base class for directory access.

    Wraps each operation so that directory failures become ``Err`` values and
    are logged once, at the boundary.
    """

    collection: str = ""

    async def _call(
        self, operation: str, func: Callable[[], Awaitable[T]]
    ) -> Result[T]:
        try:
            return Ok(await func())
        except _DIRECTORY_FAILURES as e:
            logger.exception(
                "Directory %s failed", operation, extra={"collection": self.collection}
            )
            return unavailable(f"Directory {operation} failed: {e}", e)

    async def _first(
        self, filters: Mapping[str, Any], **kwargs: Any
    ) -> dict[str, Any] | None:
        docs = await Database.query(self.collection, filters, limit=1, **kwargs)
        return docs[0] if docs else None


class MembershipRepository(BaseRepository):
    collection = MEMBERSHIP_APPLICATIONS

    async def find_by_email(self, email: str) -> Result[MembershipApplication | None]:
        """First application for this email, whatever its status."""

        async def _find() -> MembershipApplication | None:
            doc = await self._first({"email": normalize_email(email)})
            return MembershipApplication.from_document(doc) if doc else None

        return await self._call("application lookup", _find)

    async def find_by_discord_id(
        self, user_id: int | str
    ) -> Result[MembershipApplication | None]:
        async def _find() -> MembershipApplication | None:
            doc = await self._first({"discordUserId": str(user_id)})
            return MembershipApplication.from_document(doc) if doc else None

        return await self._call("application lookup", _find)

    async def list_by_status(
        self, status: str, limit: int | None = None
    ) -> Result[list[MembershipApplication]]:
        async def _list() -> list[MembershipApplication]:
            docs = await Database.query(
                self.collection,
                {"status": status},
                order_by="submittedAt",
                limit=limit,
            )
            return [MembershipApplication.from_document(d) for d in docs]

        return await self._call("application listing", _list)

    async def link_discord(
        self,
        application_id: str,
        fields: Mapping[str, Any],
    ) -> Result[tuple[bool, MembershipApplication | None]]:
        """
        Write link fields only if the application is approved and not yet linked.

        Returns:
            Ok((applied, application_after)). ``applied`` is False when another
            writer linked the record first or it is no longer approved.
        """

        def _linkable(doc: dict[str, Any]) -> bool:
            return doc.get("status") == APPLICATION_APPROVED and not doc.get(
                "discordUserId"
            )

        return await self._conditional_update(application_id, fields, _linkable)

    async def update_status(
        self,
        application_id: str,
        fields: Mapping[str, Any],
        condition: Callable[[dict[str, Any]], bool],
    ) -> Result[tuple[bool, MembershipApplication | None]]:
        return await self._conditional_update(application_id, fields, condition)

    async def _conditional_update(
        self,
        application_id: str,
        fields: Mapping[str, Any],
        condition: Callable[[dict[str, Any]], bool],
    ) -> Result[tuple[bool, MembershipApplication | None]]:
        async def _update() -> tuple[bool, MembershipApplication | None]:
            applied, doc = await Database.update_if(
                self.collection, application_id, fields, condition
            )
            return applied, MembershipApplication.from_document(doc) if doc else None

        return await self._call("application update", _update)

    async def add(self, application: MembershipApplication) -> Result[str]:
        return await self._call(
            "application insert",
            lambda: Database.add(
                self.collection, application.to_document(), application.id or None
            ),
        )


class AdminRepository(BaseRepository):
    collection = DISCORD_ADMINS

    async def find_active(self, user_id: int | str) -> Result[DiscordAdmin | None]:
        """The active admin record for this user, if any."""

        async def _find() -> DiscordAdmin | None:
            doc = await self._first({"userId": str(user_id), "status": ADMIN_ACTIVE})
            return DiscordAdmin.from_document(doc) if doc else None

        return await self._call("admin lookup", _find)

    async def find_latest(self, user_id: int | str) -> Result[DiscordAdmin | None]:
        """Most recently created record for this user regardless of status."""

        async def _find() -> DiscordAdmin | None:
            docs = await Database.query(self.collection, {"userId": str(user_id)})
            return DiscordAdmin.from_document(docs[-1]) if docs else None

        return await self._call("admin lookup", _find)

    async def list_active(self) -> Result[list[DiscordAdmin]]:
        async def _list() -> list[DiscordAdmin]:
            docs = await Database.query(
                self.collection, {"status": ADMIN_ACTIVE}, order_by="addedAt"
            )
            return [DiscordAdmin.from_document(d) for d in docs]

        return await self._call("admin listing", _list)

    async def add(self, admin: DiscordAdmin) -> Result[str]:
        return await self._call(
            "admin insert",
            lambda: Database.add(self.collection, admin.to_document(), admin.id or None),
        )

    async def update_if(
        self,
        admin_id: str,
        fields: Mapping[str, Any],
        condition: Callable[[dict[str, Any]], bool],
    ) -> Result[tuple[bool, DiscordAdmin | None]]:
        async def _update() -> tuple[bool, DiscordAdmin | None]:
            applied, doc = await Database.update_if(
                self.collection, admin_id, fields, condition
            )
            return applied, DiscordAdmin.from_document(doc) if doc else None

        return await self._call("admin update", _update)


class EventRepository(BaseRepository):
    collection = EVENTS

    async def get_by_slug(self, slug: str) -> Result[Event | None]:
        async def _find() -> Event | None:
            doc = await self._first({"slug": slug.strip().lower()})
            return Event.from_document(doc) if doc else None

        return await self._call("event lookup", _find)

    async def list_by_status(self, status: str) -> Result[list[Event]]:
        async def _list() -> list[Event]:
            docs = await Database.query(
                self.collection, {"status": status}, order_by="date"
            )
            return [Event.from_document(d) for d in docs]

        return await self._call("event listing", _list)

    async def add(self, event: Event) -> Result[str]:
        return await self._call(
            "event insert",
            lambda: Database.add(self.collection, event.to_document(), event.id or None),
        )

    async def count_registrations(self, slug: str) -> Result[int]:
        return await self._call(
            "registration count",
            lambda: Database.count(
                EVENT_REGISTRATIONS,
                {"eventSlug": slug, "status": REGISTRATION_REGISTERED},
            ),
        )

    async def find_registration(
        self, slug: str, user_id: int | str
    ) -> Result[EventRegistration | None]:
        async def _find() -> EventRegistration | None:
            docs = await Database.query(
                EVENT_REGISTRATIONS,
                {
                    "eventSlug": slug,
                    "discordUserId": str(user_id),
                    "status": REGISTRATION_REGISTERED,
                },
                limit=1,
            )
            return EventRegistration.from_document(docs[0]) if docs else None

        return await self._call("registration lookup", _find)

    async def add_registration(self, registration: EventRegistration) -> Result[str]:
        return await self._call(
            "registration insert",
            lambda: Database.add(
                EVENT_REGISTRATIONS, registration.to_document(), registration.id or None
            ),
        )

    async def registrations_for_user(
        self, user_id: int | str
    ) -> Result[list[EventRegistration]]:
        async def _list() -> list[EventRegistration]:
            docs = await Database.query(
                EVENT_REGISTRATIONS,
                {"discordUserId": str(user_id), "status": REGISTRATION_REGISTERED},
                order_by="registeredAt",
            )
            return [EventRegistration.from_document(d) for d in docs]

        return await self._call("registration listing", _list)

    async def registrations_for_event(
        self, slug: str
    ) -> Result[list[EventRegistration]]:
        async def _list() -> list[EventRegistration]:
            docs = await Database.query(
                EVENT_REGISTRATIONS,
                {"eventSlug": slug, "status": REGISTRATION_REGISTERED},
                order_by="registeredAt",
            )
            return [EventRegistration.from_document(d) for d in docs]

        return await self._call("registration listing", _list)
