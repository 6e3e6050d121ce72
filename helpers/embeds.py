"""
Embed Helper Module

Provides utility functions for creating and formatting Discord embeds with
consistent styling for the Manipur Astronomical Society bot.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import discord

from utils.logging import get_logger

if TYPE_CHECKING:
    from helpers.provisioning import ProvisioningGap
    from services.daily_content import DailyContent
    from services.db.models import (
        DiscordAdmin,
        Event,
        EventRegistration,
        MembershipApplication,
    )

logger = get_logger(__name__)

SOCIETY_NAME = "Manipur Astronomical Society"

COLOR_INFO = 0x3498DB
COLOR_SUCCESS = 0x00FF00
COLOR_ERROR = 0xFF0000
COLOR_WARNING = 0xFFBB00

DAILY_GREETING = (
    "🌟 **Good morning, space enthusiasts!** Here's your daily astronomy update:"
)

# Discord caps embed field values at 1024 characters
FIELD_LIMIT = 1024


def _clip(text: str, limit: int = FIELD_LIMIT) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


def create_embed(
    title: str,
    description: str,
    color: int = COLOR_SUCCESS,
    thumbnail_url: str | None = None,
) -> discord.Embed:
    """
    Creates a Discord embed with the given parameters.

    Args:
        title (str): The title of the embed.
        description (str): The description/content of the embed.
        color (int, optional): The color of the embed in hexadecimal. Defaults to green.
        thumbnail_url (str, optional): URL of the thumbnail image.

    Returns:
        discord.Embed: The created embed object.
    """
    embed = discord.Embed(title=title, description=description, color=color)
    if thumbnail_url:
        embed.set_thumbnail(url=thumbnail_url)
    return embed


def build_daily_update_embed(content: DailyContent) -> discord.Embed:
    """
    Build the daily astronomy update from whatever sections were fetched.

    Args:
        content: Assembled daily content; missing sources are simply omitted.

    Returns:
        discord.Embed: The daily update embed.
    """
    embed = create_embed(
        "🌌 Daily Astronomy Update",
        "Your daily dose of cosmic wonders!",
        COLOR_INFO,
    )
    embed.timestamp = content.generated_at
    embed.set_footer(text=f"{SOCIETY_NAME} • Data from NASA & Open Notify APIs")

    apod = content.apod
    if apod:
        embed.add_field(
            name="🖼️ NASA Astronomy Picture of the Day",
            value=_clip(f"**{apod.title}**\n{apod.short_explanation}"),
            inline=False,
        )
        if apod.image_url:
            embed.set_image(url=apod.image_url)
        if apod.copyright:
            embed.add_field(name="📸 Credit", value=_clip(apod.copyright), inline=True)

    position = content.iss_position
    if position:
        embed.add_field(
            name="🛰️ International Space Station",
            value=(
                f"**Current Location:** {position.latitude:.2f}°, {position.longitude:.2f}°\n"
                f"**Distance from {content.observer_name}:** {position.distance_km:,} km"
            ),
            inline=True,
        )

    next_pass = content.iss_pass
    if next_pass:
        embed.add_field(
            name=f"👀 Next ISS Pass Over {content.observer_name}",
            value=(
                f"**When:** {next_pass.formatted_time}\n"
                f"**Duration:** {next_pass.duration_minutes} minutes\n"
                "🔭 *Look up and wave!*"
            ),
            inline=True,
        )

    embed.add_field(
        name=f"{content.moon.emoji} Moon Phase",
        value=f"**Current:** {content.moon.name}",
        inline=True,
    )

    crew = content.astronauts
    if crew:
        names = "\n".join(f"• {name} ({craft})" for name, craft in crew.people)
        embed.add_field(
            name="👨‍🚀 People Currently in Space",
            value=_clip(f"**Total:** {crew.number}\n{names}"),
            inline=False,
        )

    embed.add_field(name="🔭 Today's Viewing Tip", value=content.viewing_tip, inline=False)
    return embed


def build_welcome_embed(
    member: discord.abc.User, application: MembershipApplication
) -> discord.Embed:
    """Welcome DM sent once a member's account is linked."""
    name = application.full_name or getattr(member, "display_name", member.name)
    description = (
        f"🔭 **Welcome to the {SOCIETY_NAME}, {name}!**\n\n"
        "Your Discord account is now linked to your membership. "
        "You have access to the members-only channels.\n\n"
        "Use `/events` to see upcoming observation sessions and `/status` "
        "to check your membership at any time.\n\n"
        "Clear skies! ✨"
    )
    return create_embed("🎉 Verification Successful!", description, COLOR_SUCCESS)


def build_join_prompt_embed(join_url: str) -> discord.Embed:
    """Prompt posted for new server members who have not verified yet."""
    description = (
        "Welcome! If you're a member of the society, run `/verify` with the email "
        "address from your membership application to unlock the members-only channels.\n\n"
        f"Not a member yet? Apply at {join_url}"
    )
    return create_embed("📡 Member Verification", description, COLOR_WARNING)


def build_status_embed(
    application: MembershipApplication,
    gap: ProvisioningGap | None = None,
    title: str = "🪪 Membership Status",
) -> discord.Embed:
    """Linked profile summary used by /status and the already-verified reply."""
    embed = create_embed(title, f"Linked to **{application.email}**", COLOR_INFO)
    embed.add_field(name="Name", value=application.full_name or "N/A", inline=True)
    embed.add_field(name="Status", value=application.status.title(), inline=True)
    if application.city:
        embed.add_field(name="City", value=application.city, inline=True)
    if application.experience_level:
        embed.add_field(name="Experience", value=application.experience_level, inline=True)
    if application.discord_verified_at:
        embed.add_field(
            name="Verified", value=application.discord_verified_at[:10], inline=True
        )
    if gap is not None:
        access = "Complete" if gap.complete else "Incomplete, run `/verify` again to restore"
        embed.add_field(name="Access", value=access, inline=False)
    return embed


def build_application_embed(application: MembershipApplication) -> discord.Embed:
    """Full application view for admins (/lookup)."""
    color = {
        "approved": COLOR_SUCCESS,
        "rejected": COLOR_ERROR,
    }.get(application.status, COLOR_WARNING)
    embed = create_embed(f"📋 {application.display_name}", application.email, color)
    embed.add_field(name="Status", value=application.status.title(), inline=True)
    embed.add_field(name="City", value=application.city or "N/A", inline=True)
    embed.add_field(name="Organization", value=application.organization or "N/A", inline=True)
    embed.add_field(
        name="Experience", value=application.experience_level or "N/A", inline=True
    )
    embed.add_field(name="Submitted", value=application.submitted_at or "N/A", inline=True)
    if application.discord_user_id:
        linked = f"<@{application.discord_user_id}>"
        if application.admin_verification:
            linked += f" (linked by <@{application.admin_verified_by}>)"
        embed.add_field(name="Discord", value=linked, inline=False)
    else:
        embed.add_field(name="Discord", value="Not linked", inline=False)
    if application.rejection_reason:
        embed.add_field(
            name="Rejection reason", value=_clip(application.rejection_reason), inline=False
        )
    return embed


def build_pending_embed(
    applications: Sequence[MembershipApplication], limit: int
) -> discord.Embed:
    if not applications:
        return create_embed("📥 Pending Applications", "No applications are waiting for review.", COLOR_INFO)
    lines = [
        f"• **{app.display_name}** ({app.email}){f' from {app.city}' if app.city else ''}"
        for app in applications
    ]
    embed = create_embed("📥 Pending Applications", _clip("\n".join(lines), 4000), COLOR_INFO)
    if len(applications) >= limit:
        embed.set_footer(text=f"Showing the oldest {limit}. Approve or reject to see more.")
    return embed


def build_admins_embed(
    admins: Sequence[DiscordAdmin], super_admin_ids: Sequence[int]
) -> discord.Embed:
    lines = [f"• <@{uid}> ⭐ (configured)" for uid in super_admin_ids]
    for admin in admins:
        star = " ⭐" if admin.is_super_admin else ""
        note = f" ({admin.notes})" if admin.notes else ""
        lines.append(f"• <@{admin.user_id}>{star}{note}")
    description = "\n".join(lines) if lines else "No admins are configured."
    embed = create_embed("🛡️ Bot Admins", _clip(description, 4000), COLOR_INFO)
    embed.set_footer(text="⭐ = super-admin")
    return embed


def build_events_embed(events: Sequence[Event]) -> discord.Embed:
    if not events:
        return create_embed("🗓️ Upcoming Events", "No upcoming events right now. Check back soon!", COLOR_INFO)
    embed = create_embed("🗓️ Upcoming Events", "Register with `/register-event <slug>`.", COLOR_INFO)
    for event in events:
        details = [f"📅 {event.date}"]
        if event.location:
            details.append(f"📍 {event.location}")
        if event.capacity is not None:
            details.append(f"👥 {event.capacity} seats")
        if event.description:
            details.append(event.description)
        embed.add_field(
            name=f"{event.title} (`{event.slug}`)",
            value=_clip("\n".join(details)),
            inline=False,
        )
    return embed


def build_registrations_embed(
    title: str, registrations: Sequence[EventRegistration], *, by_member: bool
) -> discord.Embed:
    if not registrations:
        return create_embed(title, "No registrations.", COLOR_INFO)
    if by_member:
        lines = [f"• `{r.event_slug}` (registered {(r.registered_at or '')[:10]})" for r in registrations]
    else:
        lines = [f"• <@{r.discord_user_id}> ({r.email})" for r in registrations]
    embed = create_embed(title, _clip("\n".join(lines), 4000), COLOR_INFO)
    embed.set_footer(text=f"{len(registrations)} registration(s)")
    return embed
