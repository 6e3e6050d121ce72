"""
Admin grants and membership application review.

Admin records are soft-deleted and a super-admin record can never be removed
through ``remove_admin``; neither can an id in the static allow-list, which
is not stored in the directory at all.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from services.base import BaseService
from services.db.models import (
    ADMIN_ACTIVE,
    ADMIN_REMOVED,
    APPLICATION_APPROVED,
    APPLICATION_PENDING,
    APPLICATION_REJECTED,
    DiscordAdmin,
    MembershipApplication,
    utcnow_iso,
)
from services.db.repository import AdminRepository, MembershipRepository
from utils.types import Err, ErrorKind, Ok, Result, rejected

if TYPE_CHECKING:
    import discord

    from services.privileges import PrivilegeResolver


class AdminService(BaseService):
    def __init__(
        self,
        resolver: PrivilegeResolver,
        admins: AdminRepository | None = None,
        applications: MembershipRepository | None = None,
    ) -> None:
        super().__init__("admin")
        self.resolver = resolver
        self.admins = admins or AdminRepository()
        self.applications = applications or MembershipRepository()

    async def _initialize_impl(self) -> None:
        self.logger.info(
            "%d super-admin id(s) configured", len(self.resolver.super_admin_ids)
        )

    async def _require_super_admin(self, actor: discord.abc.User) -> Err | None:
        decision = await self.resolver.check_super_admin(actor)
        if decision.granted:
            return None
        if decision.error is not None:
            return decision.error
        return rejected(
            ErrorKind.PERMISSION, "SUPER_ADMIN_REQUIRED", "Super-admin required"
        )

    # ------------------------------------------------------------------
    # Admin grants
    # ------------------------------------------------------------------

    async def add_admin(
        self,
        actor: discord.abc.User,
        target: discord.abc.User,
        *,
        super_admin: bool = False,
        notes: str | None = None,
    ) -> Result[DiscordAdmin]:
        """Grant admin (optionally super-admin) to ``target``; reactivates a removed record."""
        denied = await self._require_super_admin(actor)
        if denied is not None:
            return denied

        latest = await self.admins.find_latest(target.id)
        if isinstance(latest, Err):
            return latest
        existing = latest.value

        if existing is not None and existing.is_active:
            return rejected(ErrorKind.CONFLICT, "ALREADY_ADMIN", "Already an active admin")

        now = utcnow_iso()
        fields: dict[str, Any] = {
            "userId": str(target.id),
            "username": str(target),
            "status": ADMIN_ACTIVE,
            "isSuperAdmin": super_admin,
            "notes": notes,
            "addedBy": str(actor.id),
            "addedAt": now,
            "removedBy": None,
            "removedAt": None,
            "removalReason": None,
        }

        if existing is not None:
            updated = await self.admins.update_if(
                existing.id, fields, lambda doc: doc.get("status") != ADMIN_ACTIVE
            )
            if isinstance(updated, Err):
                return updated
            applied, record = updated.value
            if not applied or record is None:
                return rejected(ErrorKind.CONFLICT, "ALREADY_ADMIN", "Already an active admin")
        else:
            record = DiscordAdmin.from_document({"id": "", **fields})
            inserted = await self.admins.add(record)
            if isinstance(inserted, Err):
                return inserted
            record = DiscordAdmin.from_document({"id": inserted.value, **fields})

        self.logger.info(
            "Admin granted (super=%s)",
            super_admin,
            extra={"user_id": str(actor.id), "target_user_id": str(target.id)},
        )
        return Ok(record)

    async def remove_admin(
        self, actor: discord.abc.User, target_id: int, reason: str | None = None
    ) -> Result[DiscordAdmin]:
        """Soft-delete an admin grant. Super-admins and allow-listed ids are refused."""
        denied = await self._require_super_admin(actor)
        if denied is not None:
            return denied

        if self.resolver.in_allow_list(target_id):
            return rejected(ErrorKind.CONFLICT, "ADMIN_PROTECTED", "Configured super-admin")

        found = await self.admins.find_active(target_id)
        if isinstance(found, Err):
            return found
        record = found.value
        if record is None:
            return rejected(ErrorKind.VALIDATION, "ADMIN_NOT_FOUND", "No active admin record")
        if record.is_super_admin:
            return rejected(ErrorKind.CONFLICT, "ADMIN_PROTECTED", "Super-admin record")

        fields = {
            "status": ADMIN_REMOVED,
            "removedBy": str(actor.id),
            "removedAt": utcnow_iso(),
            "removalReason": reason,
        }

        # Must still be an active, non-super record at write time
        def _removable(doc: dict[str, Any]) -> bool:
            return doc.get("status") == ADMIN_ACTIVE and not doc.get("isSuperAdmin")

        updated = await self.admins.update_if(record.id, fields, _removable)
        if isinstance(updated, Err):
            return updated
        applied, current = updated.value
        if not applied or current is None:
            return rejected(ErrorKind.CONFLICT, "ADMIN_PROTECTED", "Record changed concurrently")

        self.logger.info(
            "Admin removed",
            extra={"user_id": str(actor.id), "target_user_id": str(target_id)},
        )
        return Ok(current)

    async def list_admins(self) -> Result[list[DiscordAdmin]]:
        return await self.admins.list_active()

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def find_application(self, email: str) -> Result[MembershipApplication | None]:
        return await self.applications.find_by_email(email)

    async def list_pending(self, limit: int = 10) -> Result[list[MembershipApplication]]:
        return await self.applications.list_by_status(APPLICATION_PENDING, limit)

    async def approve_application(
        self, actor: discord.abc.User, email: str
    ) -> Result[MembershipApplication]:
        fields = {
            "status": APPLICATION_APPROVED,
            "reviewedBy": str(actor.id),
            "reviewedAt": utcnow_iso(),
            "rejectionReason": None,
        }
        return await self._review(
            actor,
            email,
            fields,
            lambda doc: doc.get("status") != APPLICATION_APPROVED,
        )

    async def reject_application(
        self, actor: discord.abc.User, email: str, reason: str
    ) -> Result[MembershipApplication]:
        """Reject an application. A record already linked to a member is refused."""
        fields = {
            "status": APPLICATION_REJECTED,
            "reviewedBy": str(actor.id),
            "reviewedAt": utcnow_iso(),
            "rejectionReason": reason,
        }
        return await self._review(
            actor, email, fields, lambda doc: not doc.get("discordUserId")
        )

    async def _review(
        self,
        actor: discord.abc.User,
        email: str,
        fields: dict[str, Any],
        condition,
    ) -> Result[MembershipApplication]:
        found = await self.applications.find_by_email(email)
        if isinstance(found, Err):
            return found
        application = found.value
        if application is None:
            return rejected(ErrorKind.VALIDATION, "APPLICATION_NOT_FOUND", "No application")
        if application.is_linked and fields["status"] == APPLICATION_REJECTED:
            return rejected(ErrorKind.CONFLICT, "APPLICATION_LINKED", "Application is linked")
        if application.status == fields["status"] == APPLICATION_APPROVED:
            return Ok(application)

        updated = await self.applications.update_status(application.id, fields, condition)
        if isinstance(updated, Err):
            return updated
        applied, current = updated.value
        if current is None:
            return rejected(ErrorKind.VALIDATION, "APPLICATION_NOT_FOUND", "No application")
        if not applied:
            if fields["status"] == APPLICATION_REJECTED:
                return rejected(ErrorKind.CONFLICT, "APPLICATION_LINKED", "Application is linked")
            return Ok(current)

        self.logger.info(
            "Application %s",
            fields["status"],
            extra={"user_id": str(actor.id), "email": application.email},
        )
        return Ok(current)
