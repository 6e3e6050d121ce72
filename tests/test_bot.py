"""Command router: extension loading and the slash command catalog."""

import pytest

from bot import COMMAND_EXTENSIONS, MASBot, build_intents
from config.settings import BotSettings

EXPECTED_COMMANDS = {
    "verify",
    "status",
    "admin-link",
    "approve",
    "reject",
    "pending-applications",
    "lookup",
    "post-daily",
    "add-admin",
    "remove-admin",
    "list-admins",
    "events",
    "register-event",
    "my-registrations",
    "event-registrations",
}


def test_intents_are_minimal() -> None:
    intents = build_intents()
    assert intents.guilds and intents.members
    assert not intents.message_content
    assert not intents.presences


@pytest.mark.asyncio
async def test_extensions_register_full_catalog() -> None:
    bot = MASBot(BotSettings())

    for ext in COMMAND_EXTENSIONS:
        await bot.load_extension(ext)

    names = {command.name for command in bot.tree.get_commands()}
    assert names == EXPECTED_COMMANDS
    assert {"VerificationCog", "AdminCog", "AdminGrantsCog", "EventsCog"} <= set(bot.cogs)
