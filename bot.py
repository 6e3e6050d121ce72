import asyncio
import signal

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config.config_loader import ConfigLoader
from config.settings import BotSettings
from services.service_container import ServiceContainer
from utils.logging import get_logger

# Initialize logger
logger = get_logger(__name__)

# Slash-command extensions; each module exposes ``setup(bot)``
COMMAND_EXTENSIONS = [
    "cogs.verification.commands",
    "cogs.admin.commands",
    "cogs.admin.admins",
    "cogs.events.commands",
]


def build_intents() -> discord.Intents:
    """Start from none and enable only what's required."""
    intents = discord.Intents.none()
    intents.guilds = True  # Guild events, channels, roles
    intents.members = True  # Member join and role grants for verification
    return intents


class MASBot(commands.Bot):
    """Bot with project-specific attributes and helpers."""

    def __init__(self, settings: BotSettings, *args, **kwargs) -> None:
        kwargs.setdefault("command_prefix", commands.when_mentioned)
        kwargs.setdefault("intents", build_intents())
        super().__init__(*args, **kwargs)

        self.settings = settings
        self.services = ServiceContainer(settings, self)

    async def setup_hook(self) -> None:
        """Initialize services, load cogs, sync commands and start the scheduler."""
        await self.services.initialize()
        logger.info("ServiceContainer initialized")

        for ext in COMMAND_EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info(f"Loaded extension: {ext}")
            except commands.ExtensionError as e:
                logger.exception(f"Failed to load extension {ext}", exc_info=e)
                raise

        await self.sync_commands()

        logger.info("Registered commands: ")
        for command in self.tree.walk_commands():
            logger.info(
                f"- Command: {command.name}, Description: {command.description}"
            )

        self.services.scheduler.start()

    async def sync_commands(self) -> None:
        """Sync to GUILD_ID when set (instant), otherwise globally."""
        guild_id = self.settings.guild_id
        try:
            if guild_id is not None:
                guild = discord.Object(id=guild_id)
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                logger.info(f"Synced {len(synced)} commands to guild {guild_id}.")
            else:
                synced = await self.tree.sync()
                logger.info(f"Synced {len(synced)} commands globally.")
        except discord.HTTPException as e:
            logger.exception("Failed to sync commands", exc_info=e)

    async def on_ready(self) -> None:
        """Called when the bot is ready."""
        if not self.user:
            logger.warning("Bot user is not initialized")
            return
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info("Bot is ready and online!")

        for guild in self.guilds:
            self.check_bot_permissions(guild)

    def check_bot_permissions(self, guild: discord.Guild) -> None:
        """Verify required guild-level permissions and log any missing ones."""
        required_permissions = [
            "manage_roles",
            "manage_channels",
            "view_channel",
            "send_messages",
            "embed_links",
        ]

        if not guild.me:
            logger.warning(
                "Bot permissions cannot be checked because the bot is not in the guild."
            )
            return

        if missing_permissions := [
            perm
            for perm in required_permissions
            if not getattr(guild.me.guild_permissions, perm, False)
        ]:
            logger.warning(
                f"Missing permissions in guild '{guild.name}': {', '.join(missing_permissions)}"
            )
        else:
            logger.info(
                f"All required permissions are present in guild '{guild.name}'."
            )

    async def close(self) -> None:
        """Closes the bot and cleans up all resources."""
        logger.info("Shutting down the bot")

        try:
            await self.services.cleanup()
        except Exception as e:
            logger.exception("Error cleaning up services", exc_info=e)

        await super().close()


async def run_webhook_only(settings: BotSettings) -> None:
    """Without a bot token only the daily post runs, delivered through the webhook."""
    services = ServiceContainer(settings)
    await services.initialize()
    services.scheduler.start()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms (Windows)
            pass

    logger.info("Running in webhook-only mode")
    try:
        await stop.wait()
    finally:
        await services.cleanup()


def main() -> None:
    load_dotenv()
    config = ConfigLoader.load_config()
    settings = BotSettings.from_env(config=config)

    if not settings.interactive:
        asyncio.run(run_webhook_only(settings))
        return

    bot = MASBot(settings)
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
