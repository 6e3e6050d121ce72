#!/usr/bin/env python3
"""
Register the bot's slash commands with Discord without starting the gateway.

Loads every command extension, then syncs the command tree to GUILD_ID when
set (instant) or globally (can take up to an hour to propagate).

Usage:
    python scripts/deploy_commands.py [--global]

Exit Codes:
    0: Commands registered
    1: Missing token or the sync failed
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import discord
from discord.ext import commands
from dotenv import load_dotenv

from bot import COMMAND_EXTENSIONS, build_intents
from config.config_loader import ConfigLoader
from config.settings import BotSettings
from utils.logging import get_logger

logger = get_logger(__name__)


async def deploy(settings: BotSettings, *, force_global: bool = False) -> int:
    bot = commands.Bot(command_prefix=commands.when_mentioned, intents=build_intents())
    async with bot:
        await bot.login(settings.discord_token)
        for ext in COMMAND_EXTENSIONS:
            await bot.load_extension(ext)

        try:
            if settings.guild_id is not None and not force_global:
                guild = discord.Object(id=settings.guild_id)
                bot.tree.copy_global_to(guild=guild)
                synced = await bot.tree.sync(guild=guild)
                logger.info("Registered %d commands to guild %s", len(synced), settings.guild_id)
            else:
                synced = await bot.tree.sync()
                logger.info("Registered %d commands globally", len(synced))
        except discord.HTTPException as e:
            logger.exception("Command registration failed", exc_info=e)
            return 1

    for command in synced:
        print(f"/{command.name}: {command.description}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        "--global",
        dest="force_global",
        action="store_true",
        help="Register globally even when GUILD_ID is set",
    )
    args = parser.parse_args()

    load_dotenv()
    settings = BotSettings.from_env(config=ConfigLoader.load_config())
    if not settings.interactive:
        logger.error("DISCORD_TOKEN is not set; cannot register commands")
        return 1

    return asyncio.run(deploy(settings, force_global=args.force_global))


if __name__ == "__main__":
    sys.exit(main())
