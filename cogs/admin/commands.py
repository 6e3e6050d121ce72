"""
Admin commands for membership applications and the daily post.
"""

import discord
from discord import app_commands
from discord.ext import commands

from helpers.decorators import guard_command, require_admin
from helpers.discord_reply import send_user_error, send_user_success
from helpers.embeds import build_application_embed, build_pending_embed
from helpers.error_messages import format_result_error, format_user_error, format_user_success
from services.daily_scheduler import TRIGGER_MANUAL, PublishStatus
from services.db.models import APPLICATION_PENDING, normalize_email
from services.verification_service import OutcomeKind, is_valid_email
from utils.log_context import get_interaction_extra
from utils.logging import get_logger
from utils.types import Err

PENDING_LIMIT = 10


class AdminCog(commands.Cog):
    """Application review, admin-initiated linking and manual daily posts."""

    def __init__(self, bot) -> None:
        self.bot = bot
        self.logger = get_logger(__name__)

    @property
    def services(self):
        return self.bot.services

    @app_commands.command(
        name="admin-link",
        description="Link a member to an approved membership application.",
    )
    @app_commands.describe(
        member="The Discord member to link.",
        email="The email address on their approved application.",
    )
    @app_commands.guild_only()
    @require_admin()
    @guard_command
    async def admin_link(
        self, interaction: discord.Interaction, member: discord.Member, email: str
    ) -> None:
        email = normalize_email(email)
        extra = get_interaction_extra(
            interaction, target_user_id=str(member.id), email=email
        )
        self.logger.info("admin-link command triggered", extra=extra)

        if not is_valid_email(email):
            await send_user_error(interaction, format_user_error("INVALID_EMAIL", email=email))
            return

        await interaction.response.defer(ephemeral=True)

        outcome = await self.services.verification.admin_link(
            interaction.user, member, email
        )

        if outcome.kind in (OutcomeKind.LINKED, OutcomeKind.ALREADY_VERIFIED):
            await send_user_success(
                interaction,
                format_user_success("ADMIN_LINKED", user_mention=member.mention, email=email),
            )
        elif outcome.kind is OutcomeKind.CONFLICT:
            await send_user_error(interaction, format_user_error("ADMIN_LINK_CONFLICT", email=email))
        elif outcome.kind is OutcomeKind.NOT_APPROVED:
            application = outcome.application
            if application is None:
                await send_user_error(
                    interaction, format_user_error("APPLICATION_NOT_FOUND", email=email)
                )
            elif application.status == APPLICATION_PENDING:
                await send_user_error(interaction, format_user_error("PENDING", email=email))
            else:
                await send_user_error(
                    interaction,
                    format_user_error(
                        "NOT_APPROVED", email=email, join_url=self.services.settings.join_url
                    ),
                )
        else:
            await send_user_error(interaction, format_user_error("DB_TEMP_ERROR"))

        self.logger.info("admin-link command completed: %s", outcome.kind.value, extra=extra)

    @app_commands.command(name="approve", description="Approve a membership application.")
    @app_commands.describe(email="The applicant's email address.")
    @app_commands.guild_only()
    @require_admin()
    @guard_command
    async def approve(self, interaction: discord.Interaction, email: str) -> None:
        email = normalize_email(email)
        self.logger.info(
            "approve command triggered", extra=get_interaction_extra(interaction, email=email)
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.admin.approve_application(interaction.user, email)
        if isinstance(result, Err):
            await send_user_error(interaction, format_result_error(result, email=email))
            return
        await send_user_success(interaction, format_user_success("APPROVED", email=email))

    @app_commands.command(name="reject", description="Reject a membership application.")
    @app_commands.describe(
        email="The applicant's email address.",
        reason="Why the application is being rejected.",
    )
    @app_commands.guild_only()
    @require_admin()
    @guard_command
    async def reject(
        self, interaction: discord.Interaction, email: str, reason: str
    ) -> None:
        email = normalize_email(email)
        self.logger.info(
            "reject command triggered", extra=get_interaction_extra(interaction, email=email)
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.admin.reject_application(
            interaction.user, email, reason.strip()
        )
        if isinstance(result, Err):
            await send_user_error(interaction, format_result_error(result, email=email))
            return
        await send_user_success(interaction, format_user_success("REJECTED", email=email))

    @app_commands.command(
        name="pending-applications",
        description="List membership applications waiting for review.",
    )
    @app_commands.guild_only()
    @require_admin()
    @guard_command
    async def pending_applications(self, interaction: discord.Interaction) -> None:
        self.logger.info(
            "pending-applications command triggered",
            extra=get_interaction_extra(interaction),
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.admin.list_pending(PENDING_LIMIT)
        if isinstance(result, Err):
            await send_user_error(interaction, format_result_error(result))
            return
        await interaction.followup.send(
            embed=build_pending_embed(result.value, PENDING_LIMIT), ephemeral=True
        )

    @app_commands.command(
        name="lookup", description="Show the membership application for an email."
    )
    @app_commands.describe(email="The applicant's email address.")
    @app_commands.guild_only()
    @require_admin()
    @guard_command
    async def lookup(self, interaction: discord.Interaction, email: str) -> None:
        email = normalize_email(email)
        self.logger.info(
            "lookup command triggered", extra=get_interaction_extra(interaction, email=email)
        )
        await interaction.response.defer(ephemeral=True)

        result = await self.services.admin.find_application(email)
        if isinstance(result, Err):
            await send_user_error(interaction, format_result_error(result))
            return
        if result.value is None:
            await send_user_error(
                interaction, format_user_error("APPLICATION_NOT_FOUND", email=email)
            )
            return
        await interaction.followup.send(
            embed=build_application_embed(result.value), ephemeral=True
        )

    @app_commands.command(
        name="post-daily", description="Send the daily astronomy update now."
    )
    @app_commands.guild_only()
    @require_admin()
    @guard_command
    async def post_daily(self, interaction: discord.Interaction) -> None:
        self.logger.info(
            "post-daily command triggered",
            extra=get_interaction_extra(interaction, trigger=TRIGGER_MANUAL),
        )
        await interaction.response.defer(ephemeral=True)

        status = await self.services.scheduler.publish(TRIGGER_MANUAL)
        if status is PublishStatus.SENT:
            await send_user_success(interaction, format_user_success("DAILY_POSTED"))
        elif status is PublishStatus.THROTTLED:
            minutes = self.services.settings.schedule.min_interval_minutes
            await send_user_error(
                interaction, format_user_error("DAILY_THROTTLED", minutes=minutes)
            )
        elif status is PublishStatus.NO_TARGET:
            await send_user_error(interaction, format_user_error("NO_DAILY_TARGET"))
        else:
            await send_user_error(interaction, format_user_error("DAILY_FAILED"))


async def setup(bot) -> None:
    await bot.add_cog(AdminCog(bot))
