"""
Record types for the directory collections.

Documents are stored with camelCase field names; these frozen dataclasses are
the Python-side view of them. Absent fields read back as None. Discord ids are
kept as strings, exactly as they are written to the directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

APPLICATION_PENDING = "pending"
APPLICATION_APPROVED = "approved"
APPLICATION_REJECTED = "rejected"

ADMIN_ACTIVE = "active"
ADMIN_REMOVED = "removed"

EVENT_OPEN = "open"
EVENT_CLOSED = "closed"

REGISTRATION_REGISTERED = "registered"
REGISTRATION_CANCELLED = "cancelled"


def utcnow_iso() -> str:
    """Timestamp format used for every *At field."""
    return datetime.now(UTC).isoformat()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


@dataclass(frozen=True)
class MembershipApplication:
    id: str
    email: str
    status: str = APPLICATION_PENDING
    full_name: str | None = None
    city: str | None = None
    organization: str | None = None
    experience_level: str | None = None
    phone: str | None = None
    submitted_at: str | None = None
    reviewed_by: str | None = None
    reviewed_at: str | None = None
    rejection_reason: str | None = None
    discord_user_id: str | None = None
    discord_username: str | None = None
    discord_verified_at: str | None = None
    admin_verification: bool = False
    admin_verified_by: str | None = None

    @property
    def is_approved(self) -> bool:
        return self.status == APPLICATION_APPROVED

    @property
    def is_linked(self) -> bool:
        return bool(self.discord_user_id)

    def is_linked_to(self, user_id: int | str) -> bool:
        return self.discord_user_id is not None and self.discord_user_id == str(user_id)

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> MembershipApplication:
        return cls(
            id=str(doc["id"]),
            email=normalize_email(str(doc.get("email") or "")),
            status=str(doc.get("status") or APPLICATION_PENDING),
            full_name=doc.get("fullName"),
            city=doc.get("city"),
            organization=doc.get("organization"),
            experience_level=doc.get("experienceLevel"),
            phone=_opt_str(doc.get("phone")),
            submitted_at=doc.get("submittedAt"),
            reviewed_by=_opt_str(doc.get("reviewedBy")),
            reviewed_at=doc.get("reviewedAt"),
            rejection_reason=doc.get("rejectionReason"),
            discord_user_id=_opt_str(doc.get("discordUserId")),
            discord_username=doc.get("discordUsername"),
            discord_verified_at=doc.get("discordVerifiedAt"),
            admin_verification=bool(doc.get("adminVerification", False)),
            admin_verified_by=_opt_str(doc.get("adminVerifiedBy")),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "status": self.status,
            "fullName": self.full_name,
            "city": self.city,
            "organization": self.organization,
            "experienceLevel": self.experience_level,
            "phone": self.phone,
            "submittedAt": self.submitted_at,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": self.reviewed_at,
            "rejectionReason": self.rejection_reason,
            "discordUserId": self.discord_user_id,
            "discordUsername": self.discord_username,
            "discordVerifiedAt": self.discord_verified_at,
            "adminVerification": self.admin_verification,
            "adminVerifiedBy": self.admin_verified_by,
        }


@dataclass(frozen=True)
class DiscordAdmin:
    id: str
    user_id: str
    username: str | None = None
    status: str = ADMIN_ACTIVE
    is_super_admin: bool = False
    notes: str | None = None
    added_by: str | None = None
    added_at: str | None = None
    removed_by: str | None = None
    removed_at: str | None = None
    removal_reason: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ADMIN_ACTIVE

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> DiscordAdmin:
        return cls(
            id=str(doc["id"]),
            user_id=str(doc.get("userId") or ""),
            username=doc.get("username"),
            status=str(doc.get("status") or ADMIN_ACTIVE),
            is_super_admin=bool(doc.get("isSuperAdmin", False)),
            notes=doc.get("notes"),
            added_by=_opt_str(doc.get("addedBy")),
            added_at=doc.get("addedAt"),
            removed_by=_opt_str(doc.get("removedBy")),
            removed_at=doc.get("removedAt"),
            removal_reason=doc.get("removalReason"),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "status": self.status,
            "isSuperAdmin": self.is_super_admin,
            "notes": self.notes,
            "addedBy": self.added_by,
            "addedAt": self.added_at,
            "removedBy": self.removed_by,
            "removedAt": self.removed_at,
            "removalReason": self.removal_reason,
        }


@dataclass(frozen=True)
class Event:
    id: str
    slug: str
    title: str
    date: str
    description: str | None = None
    location: str | None = None
    status: str = EVENT_OPEN
    capacity: int | None = None

    @property
    def is_open(self) -> bool:
        return self.status == EVENT_OPEN

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Event:
        capacity = doc.get("capacity")
        return cls(
            id=str(doc["id"]),
            slug=str(doc.get("slug") or ""),
            title=str(doc.get("title") or doc.get("slug") or "Untitled event"),
            date=str(doc.get("date") or ""),
            description=doc.get("description"),
            location=doc.get("location"),
            status=str(doc.get("status") or EVENT_OPEN),
            capacity=int(capacity) if capacity is not None else None,
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "date": self.date,
            "description": self.description,
            "location": self.location,
            "status": self.status,
            "capacity": self.capacity,
        }


@dataclass(frozen=True)
class EventRegistration:
    id: str
    event_slug: str
    email: str
    discord_user_id: str
    registered_at: str | None = None
    status: str = REGISTRATION_REGISTERED

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> EventRegistration:
        return cls(
            id=str(doc["id"]),
            event_slug=str(doc.get("eventSlug") or ""),
            email=normalize_email(str(doc.get("email") or "")),
            discord_user_id=str(doc.get("discordUserId") or ""),
            registered_at=doc.get("registeredAt"),
            status=str(doc.get("status") or REGISTRATION_REGISTERED),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "eventSlug": self.event_slug,
            "email": self.email,
            "discordUserId": self.discord_user_id,
            "registeredAt": self.registered_at,
            "status": self.status,
        }
