"""
Member verification commands.

``/verify`` links the caller's Discord account to their approved membership
application and grants member access; ``/status`` shows what is linked.
New members are pointed at ``/verify`` in the welcome channel when they join.
"""

import discord
from discord import app_commands
from discord.ext import commands

from helpers.decorators import guard_command
from helpers.discord_api import channel_send
from helpers.discord_reply import send_user_error, send_user_success
from helpers.embeds import build_join_prompt_embed, build_status_embed
from helpers.error_messages import format_result_error, format_user_error, format_user_success
from services.db.models import APPLICATION_PENDING, APPLICATION_REJECTED, normalize_email
from services.verification_service import OutcomeKind, VerificationOutcome, is_valid_email
from utils.log_context import get_context_extra, get_interaction_extra
from utils.logging import get_logger
from utils.types import Err

PARTIAL_ACCESS_NOTE = (
    "\n⚠️ Some access couldn't be granted right now. Run `/verify` again later "
    "or ask an admin."
)


def outcome_message(outcome: VerificationOutcome, email: str, join_url: str) -> str:
    """User-facing reply for a self-verification outcome."""
    application = outcome.application

    if outcome.kind is OutcomeKind.UNAVAILABLE:
        return format_user_error("DB_TEMP_ERROR")

    if outcome.kind is OutcomeKind.NOT_APPROVED:
        status = application.status if application is not None else None
        if status == APPLICATION_PENDING:
            return format_user_error("PENDING", email=email)
        if status == APPLICATION_REJECTED:
            return format_user_error("REJECTED", email=email, join_url=join_url)
        return format_user_error("NOT_APPROVED", email=email, join_url=join_url)

    if outcome.kind is OutcomeKind.CONFLICT:
        return format_user_error("LINKED_OTHER")

    if outcome.kind is OutcomeKind.LINKED:
        name = application.display_name if application is not None else "member"
        message = format_user_success("VERIFIED", name=name)
    elif outcome.restored:
        message = format_user_success("ACCESS_RESTORED")
    else:
        message = format_user_success("ALREADY_VERIFIED")

    if outcome.report is not None and not outcome.report.ok:
        message += PARTIAL_ACCESS_NOTE
    return message


class VerificationCog(commands.Cog):
    """Self-service membership verification."""

    def __init__(self, bot) -> None:
        self.bot = bot
        self.logger = get_logger(__name__)

    @property
    def services(self):
        return self.bot.services

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        """Point new members at /verify in the welcome channel."""
        settings = self.services.settings
        if settings.welcome_channel_id is None:
            return
        channel = member.guild.get_channel(settings.welcome_channel_id)
        if channel is None:
            self.logger.warning(
                "Welcome channel not found",
                extra=get_context_extra(guild=member.guild, user=member),
            )
            return
        embed = build_join_prompt_embed(settings.join_url)
        await channel_send(channel, content=member.mention, embed=embed)

    @app_commands.command(
        name="verify",
        description="Link your Discord account to your society membership.",
    )
    @app_commands.describe(email="The email address from your membership application.")
    @app_commands.guild_only()
    @guard_command
    async def verify(self, interaction: discord.Interaction, email: str) -> None:
        email = normalize_email(email)
        self.logger.info(
            "verify command triggered",
            extra=get_interaction_extra(interaction, email=email),
        )

        if not isinstance(interaction.user, discord.Member):
            await send_user_error(interaction, format_user_error("GUILD_ONLY"))
            return
        if not is_valid_email(email):
            await send_user_error(interaction, format_user_error("INVALID_EMAIL", email=email))
            return

        await interaction.response.defer(ephemeral=True)

        outcome = await self.services.verification.verify_self(interaction.user, email)
        message = outcome_message(outcome, email, self.services.settings.join_url)

        if outcome.kind is OutcomeKind.ALREADY_VERIFIED and outcome.application is not None:
            embed = build_status_embed(outcome.application, outcome.gap)
            await interaction.followup.send(message, embed=embed, ephemeral=True)
        elif outcome.kind in (OutcomeKind.LINKED, OutcomeKind.ALREADY_VERIFIED):
            await send_user_success(interaction, message)
        else:
            await send_user_error(interaction, message)

        self.logger.info(
            "verify command completed: %s",
            outcome.kind.value,
            extra=get_interaction_extra(interaction, email=email),
        )

    @app_commands.command(
        name="status", description="Show the membership linked to your Discord account."
    )
    @app_commands.guild_only()
    @guard_command
    async def status(self, interaction: discord.Interaction) -> None:
        self.logger.info(
            "status command triggered", extra=get_interaction_extra(interaction)
        )
        if not isinstance(interaction.user, discord.Member):
            await send_user_error(interaction, format_user_error("GUILD_ONLY"))
            return

        await interaction.response.defer(ephemeral=True)

        report = await self.services.verification.lookup_status(interaction.user)
        if isinstance(report, Err):
            await send_user_error(interaction, format_result_error(report))
            return
        if report.application is None:
            await send_user_error(interaction, format_user_error("NOT_LINKED"))
            return

        embed = build_status_embed(report.application, report.gap)
        await interaction.followup.send(embed=embed, ephemeral=True)


async def setup(bot) -> None:
    await bot.add_cog(VerificationCog(bot))
