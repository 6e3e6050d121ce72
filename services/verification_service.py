"""
Membership verification.

Links a Discord member to an approved membership application and provisions
member access. The state machine runs over the application record, which is
the durable source of truth:

    NOT_APPROVED                      no record, or status != approved
    APPROVED_UNLINKED                 approved, discordUserId unset
    APPROVED_LINKED_OTHER             approved, linked to a different user
    APPROVED_LINKED_SELF_INCOMPLETE   linked to the requester, grants missing
    APPROVED_LINKED_SELF_COMPLETE     linked to the requester, fully provisioned

The link is written first and is the success signal. Grants and the welcome DM
follow as independent best-effort steps and are never rolled back; running
verification again re-applies whatever is missing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from helpers.provisioning import AccessProvisioner, ProvisioningGap, ProvisioningReport
from services.base import BaseService
from services.db.models import MembershipApplication, utcnow_iso
from services.db.repository import MembershipRepository
from utils.types import Err

if TYPE_CHECKING:
    import discord

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email.strip()))


class VerificationState(Enum):
    NOT_APPROVED = "not_approved"
    APPROVED_UNLINKED = "approved_unlinked"
    APPROVED_LINKED_OTHER = "approved_linked_other"
    APPROVED_LINKED_SELF_INCOMPLETE = "approved_linked_self_incomplete"
    APPROVED_LINKED_SELF_COMPLETE = "approved_linked_self_complete"


class OutcomeKind(Enum):
    LINKED = "linked"
    ALREADY_VERIFIED = "already_verified"
    NOT_APPROVED = "not_approved"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class VerificationOutcome:
    kind: OutcomeKind
    application: MembershipApplication | None = None
    gap: ProvisioningGap | None = None
    report: ProvisioningReport | None = None
    restored: bool = False
    error: Err | None = None


@dataclass(frozen=True)
class StatusReport:
    application: MembershipApplication | None
    gap: ProvisioningGap | None = None


def classify_state(
    application: MembershipApplication | None,
    user_id: int,
    gap: ProvisioningGap | None = None,
) -> VerificationState:
    """
    Place an application in the verification state machine for ``user_id``.

    ``gap`` is only consulted when the record is linked to the user; a missing
    gap is treated as complete.
    """
    if application is None or not application.is_approved:
        return VerificationState.NOT_APPROVED
    if not application.is_linked:
        return VerificationState.APPROVED_UNLINKED
    if not application.is_linked_to(user_id):
        return VerificationState.APPROVED_LINKED_OTHER
    if gap is not None and not gap.complete:
        return VerificationState.APPROVED_LINKED_SELF_INCOMPLETE
    return VerificationState.APPROVED_LINKED_SELF_COMPLETE


class VerificationService(BaseService):
    """Self-service and admin-initiated membership verification."""

    def __init__(
        self,
        provisioner: AccessProvisioner,
        applications: MembershipRepository | None = None,
    ) -> None:
        super().__init__("verification")
        self.provisioner = provisioner
        self.applications = applications or MembershipRepository()

    async def _initialize_impl(self) -> None:
        if self.provisioner.member_role_id is None and not self.provisioner.restricted_channel_ids:
            self.logger.warning("No member role or restricted channels configured")

    async def verify_self(
        self, member: discord.Member, email: str
    ) -> VerificationOutcome:
        """Link ``member`` to the approved application for ``email``."""
        extra = {"user_id": str(member.id), "email": email}

        found = await self.applications.find_by_email(email)
        if isinstance(found, Err):
            return VerificationOutcome(OutcomeKind.UNAVAILABLE, error=found)

        application = found.value
        outcome = await self._advance(member, application, link_fields=self._self_link_fields(member))
        self.logger.info("Self-verification: %s", outcome.kind.value, extra=extra)
        return outcome

    async def admin_link(
        self, admin: discord.abc.User, target: discord.Member, email: str
    ) -> VerificationOutcome:
        """
        Link ``target`` to the approved application for ``email`` on an admin's behalf.

        A record already linked to a different user is refused; an admin cannot
        move a link from one member to another.
        """
        extra = {
            "user_id": str(admin.id),
            "target_user_id": str(target.id),
            "email": email,
        }

        found = await self.applications.find_by_email(email)
        if isinstance(found, Err):
            return VerificationOutcome(OutcomeKind.UNAVAILABLE, error=found)

        fields = {
            **self._self_link_fields(target),
            "adminVerification": True,
            "adminVerifiedBy": str(admin.id),
        }
        outcome = await self._advance(target, found.value, link_fields=fields)
        self.logger.info("Admin link: %s", outcome.kind.value, extra=extra)
        return outcome

    async def lookup_status(self, member: discord.Member) -> StatusReport | Err:
        """The application linked to ``member`` (if any) and their current access gap."""
        found = await self.applications.find_by_discord_id(member.id)
        if isinstance(found, Err):
            return found
        application = found.value
        if application is None:
            return StatusReport(None)
        return StatusReport(application, self.provisioner.inspect(member))

    @staticmethod
    def _self_link_fields(member: discord.abc.User) -> dict[str, object]:
        return {
            "discordUserId": str(member.id),
            "discordUsername": str(member),
            "discordVerifiedAt": utcnow_iso(),
        }

    async def _advance(
        self,
        member: discord.Member,
        application: MembershipApplication | None,
        *,
        link_fields: dict[str, object],
    ) -> VerificationOutcome:
        gap = None
        if application is not None and application.is_linked_to(member.id):
            gap = self.provisioner.inspect(member)
        state = classify_state(application, member.id, gap)

        if state is VerificationState.NOT_APPROVED:
            return VerificationOutcome(OutcomeKind.NOT_APPROVED, application)
        if state is VerificationState.APPROVED_LINKED_OTHER:
            return VerificationOutcome(OutcomeKind.CONFLICT, application)
        if state is VerificationState.APPROVED_LINKED_SELF_COMPLETE:
            return VerificationOutcome(OutcomeKind.ALREADY_VERIFIED, application, gap)
        if state is VerificationState.APPROVED_LINKED_SELF_INCOMPLETE:
            return await self._restore(member, application, gap)

        if application is None:
            return VerificationOutcome(OutcomeKind.NOT_APPROVED)
        linked = await self.applications.link_discord(application.id, link_fields)
        if isinstance(linked, Err):
            return VerificationOutcome(OutcomeKind.UNAVAILABLE, application, error=linked)

        applied, current = linked.value
        if not applied:
            # Someone else changed the record between lookup and write
            self.logger.warning(
                "Link not applied; record changed concurrently",
                extra={"user_id": str(member.id), "email": application.email},
            )
            if current is not None and current.is_linked_to(member.id):
                return await self._advance(member, current, link_fields=link_fields)
            if current is not None and current.is_approved and current.is_linked:
                return VerificationOutcome(OutcomeKind.CONFLICT, current)
            return VerificationOutcome(OutcomeKind.NOT_APPROVED, current)

        report = await self.provisioner.provision(member)
        await self.provisioner.send_welcome(member, current or application)
        return VerificationOutcome(
            OutcomeKind.LINKED, current or application, report=report
        )

    async def _restore(
        self,
        member: discord.Member,
        application: MembershipApplication,
        gap: ProvisioningGap | None,
    ) -> VerificationOutcome:
        report = await self.provisioner.provision(member)
        self.logger.info(
            "Restored missing access for linked member",
            extra={"user_id": str(member.id), "email": application.email},
        )
        return VerificationOutcome(
            OutcomeKind.ALREADY_VERIFIED,
            application,
            gap=gap,
            report=report,
            restored=True,
        )
