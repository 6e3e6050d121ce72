"""
Centralized Discord reply helpers for consistent message delivery.

All slash-command replies are ephemeral unless a caller says otherwise, and
each helper picks ``response.send_message`` or ``followup.send`` depending on
whether the interaction was already deferred. Cogs use these instead of
calling the interaction directly so delivery failures are logged one way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from utils.logging import get_logger

if TYPE_CHECKING:
    from discord import Embed, Interaction, Message

logger = get_logger(__name__)


async def respond(
    interaction: Interaction,
    content: str | None = None,
    *,
    embed: Embed | None = None,
    embeds: list[Embed] | None = None,
    ephemeral: bool = True,
) -> Message | None:
    """
    Unified response helper that handles all interaction response patterns.

    Args:
        interaction: Discord interaction
        content: Optional text content
        embed: Optional single embed
        embeds: Optional list of embeds
        ephemeral: Whether to send as ephemeral (default: True)

    Returns:
        The sent message when a followup was used, otherwise None
    """
    try:
        kwargs: dict = {"ephemeral": ephemeral}
        if content:
            kwargs["content"] = content
        if embed:
            kwargs["embed"] = embed
        if embeds:
            kwargs["embeds"] = embeds

        if interaction.response.is_done():
            return await interaction.followup.send(**kwargs)
        await interaction.response.send_message(**kwargs)
        return None

    except discord.NotFound:
        logger.warning("Interaction expired before response could be sent")
        return None
    except discord.HTTPException as e:
        logger.exception(f"Failed to send response: {e}")
        return None


async def send_user_error(
    interaction: discord.Interaction, text: str, ephemeral: bool = True
) -> None:
    """Send an error message; a leading ❌ is added when the text has no emoji prefix."""
    if not text.startswith(("❌", "⚠️", "⏳")):
        text = f"❌ {text}"
    await respond(interaction, text, ephemeral=ephemeral)


async def send_user_success(
    interaction: discord.Interaction, text: str, ephemeral: bool = True
) -> None:
    if not text.startswith("✅"):
        text = f"✅ {text}"
    await respond(interaction, text, ephemeral=ephemeral)
