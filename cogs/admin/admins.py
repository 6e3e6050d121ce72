"""
Super-admin commands for managing the bot's admin list.
"""

import discord
from discord import app_commands
from discord.ext import commands

from helpers.decorators import guard_command, require_admin, require_super_admin
from helpers.discord_reply import send_user_error, send_user_success
from helpers.embeds import build_admins_embed
from helpers.error_messages import format_result_error, format_user_success
from utils.log_context import get_interaction_extra
from utils.logging import get_logger
from utils.types import Err


class AdminGrantsCog(commands.Cog):
    def __init__(self, bot) -> None:
        self.bot = bot
        self.logger = get_logger(__name__)

    @property
    def services(self):
        return self.bot.services

    @app_commands.command(name="add-admin", description="Grant admin access to a user.")
    @app_commands.describe(
        user="The user to make an admin.",
        super_admin="Also allow them to manage the admin list.",
        notes="Optional note shown in /list-admins.",
    )
    @app_commands.guild_only()
    @require_super_admin()
    @guard_command
    async def add_admin(
        self,
        interaction: discord.Interaction,
        user: discord.User,
        super_admin: bool = False,
        notes: str | None = None,
    ) -> None:
        self.logger.info(
            "add-admin command triggered",
            extra=get_interaction_extra(interaction, target_user_id=str(user.id)),
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.admin.add_admin(
            interaction.user, user, super_admin=super_admin, notes=notes
        )
        if isinstance(result, Err):
            await send_user_error(
                interaction, format_result_error(result, user_mention=user.mention)
            )
            return
        await send_user_success(
            interaction, format_user_success("ADMIN_ADDED", user_mention=user.mention)
        )

    @app_commands.command(name="remove-admin", description="Revoke a user's admin access.")
    @app_commands.describe(
        user="The admin to remove.",
        reason="Optional reason, kept on the record.",
    )
    @app_commands.guild_only()
    @require_super_admin()
    @guard_command
    async def remove_admin(
        self,
        interaction: discord.Interaction,
        user: discord.User,
        reason: str | None = None,
    ) -> None:
        self.logger.info(
            "remove-admin command triggered",
            extra=get_interaction_extra(interaction, target_user_id=str(user.id)),
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.admin.remove_admin(interaction.user, user.id, reason)
        if isinstance(result, Err):
            await send_user_error(
                interaction, format_result_error(result, user_mention=user.mention)
            )
            return
        await send_user_success(
            interaction, format_user_success("ADMIN_REMOVED", user_mention=user.mention)
        )

    @app_commands.command(name="list-admins", description="Show everyone with admin access.")
    @app_commands.guild_only()
    @require_admin()
    @guard_command
    async def list_admins(self, interaction: discord.Interaction) -> None:
        self.logger.info(
            "list-admins command triggered", extra=get_interaction_extra(interaction)
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.admin.list_admins()
        if isinstance(result, Err):
            await send_user_error(interaction, format_result_error(result))
            return
        super_ids = sorted(self.services.privileges.super_admin_ids)
        await interaction.followup.send(
            embed=build_admins_embed(result.value, super_ids), ephemeral=True
        )


async def setup(bot) -> None:
    await bot.add_cog(AdminGrantsCog(bot))
