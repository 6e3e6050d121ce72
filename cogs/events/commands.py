"""
Event listing and registration commands.
"""

import discord
from discord import app_commands
from discord.ext import commands

from helpers.decorators import guard_command, require_admin
from helpers.discord_reply import send_user_error, send_user_success
from helpers.embeds import build_events_embed, build_registrations_embed
from helpers.error_messages import format_result_error, format_user_success
from utils.log_context import get_interaction_extra
from utils.logging import get_logger
from utils.types import Err


class EventsCog(commands.Cog):
    def __init__(self, bot) -> None:
        self.bot = bot
        self.logger = get_logger(__name__)

    @property
    def services(self):
        return self.bot.services

    @app_commands.command(name="events", description="List upcoming society events.")
    @app_commands.guild_only()
    @guard_command
    async def events(self, interaction: discord.Interaction) -> None:
        self.logger.info("events command triggered", extra=get_interaction_extra(interaction))
        await interaction.response.defer(ephemeral=True)

        result = await self.services.events.list_upcoming()
        if isinstance(result, Err):
            await send_user_error(interaction, format_result_error(result))
            return
        await interaction.followup.send(embed=build_events_embed(result.value), ephemeral=True)

    @app_commands.command(name="register-event", description="Register for a society event.")
    @app_commands.describe(slug="The event's short name, as shown in /events.")
    @app_commands.guild_only()
    @guard_command
    async def register_event(self, interaction: discord.Interaction, slug: str) -> None:
        slug = slug.strip().lower()
        self.logger.info(
            "register-event command triggered", extra=get_interaction_extra(interaction)
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.events.register(interaction.user, slug)
        if isinstance(result, Err):
            await send_user_error(interaction, format_result_error(result, slug=slug))
            return
        event, _registration = result.value
        await send_user_success(
            interaction, format_user_success("REGISTERED", title=event.title, date=event.date)
        )

    @app_commands.command(
        name="my-registrations", description="Show the events you're registered for."
    )
    @app_commands.guild_only()
    @guard_command
    async def my_registrations(self, interaction: discord.Interaction) -> None:
        self.logger.info(
            "my-registrations command triggered", extra=get_interaction_extra(interaction)
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.events.registrations_for_member(interaction.user)
        if isinstance(result, Err):
            await send_user_error(interaction, format_result_error(result))
            return
        embed = build_registrations_embed("🎟️ Your Registrations", result.value, by_member=True)
        await interaction.followup.send(embed=embed, ephemeral=True)

    @app_commands.command(
        name="event-registrations", description="List who is registered for an event."
    )
    @app_commands.describe(slug="The event's short name.")
    @app_commands.guild_only()
    @require_admin()
    @guard_command
    async def event_registrations(self, interaction: discord.Interaction, slug: str) -> None:
        slug = slug.strip().lower()
        self.logger.info(
            "event-registrations command triggered", extra=get_interaction_extra(interaction)
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.events.registrations_for_event(slug)
        if isinstance(result, Err):
            await send_user_error(interaction, format_result_error(result, slug=slug))
            return
        embed = build_registrations_embed(
            f"🎟️ Registrations for {slug}", result.value, by_member=False
        )
        await interaction.followup.send(embed=embed, ephemeral=True)


async def setup(bot) -> None:
    await bot.add_cog(EventsCog(bot))
