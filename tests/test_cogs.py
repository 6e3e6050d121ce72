"""Slash command wiring and the replies each cog sends."""

from types import SimpleNamespace

import pytest

from cogs.admin import AdminCog, AdminGrantsCog
from cogs.events import EventsCog
from cogs.verification import VerificationCog
from cogs.verification.commands import PARTIAL_ACCESS_NOTE, outcome_message
from helpers.error_messages import format_user_error, format_user_success
from helpers.provisioning import ProvisioningReport
from services.db.models import (
    APPLICATION_APPROVED,
    APPLICATION_PENDING,
    APPLICATION_REJECTED,
    MembershipApplication,
)
from services.verification_service import OutcomeKind, VerificationOutcome
from tests.factories import make_interaction, make_member, make_user
from tests.factories.db_factories import seed_application, seed_event

JOIN_URL = "https://example.org/join"


def _app(status: str = APPLICATION_APPROVED) -> MembershipApplication:
    return MembershipApplication(
        id="app-1", email="vega@example.org", status=status, full_name="Vega Lyra"
    )


@pytest.mark.parametrize(
    ("cog_cls", "names"),
    [
        (VerificationCog, {"verify", "status"}),
        (
            AdminCog,
            {"admin-link", "approve", "reject", "pending-applications", "lookup", "post-daily"},
        ),
        (AdminGrantsCog, {"add-admin", "remove-admin", "list-admins"}),
        (EventsCog, {"events", "register-event", "my-registrations", "event-registrations"}),
    ],
)
def test_command_catalog(cog_cls, names) -> None:
    cog = cog_cls(SimpleNamespace(services=None))
    assert {command.name for command in cog.get_app_commands()} == names


class TestOutcomeMessage:
    @pytest.mark.parametrize(
        ("status", "code"),
        [
            (APPLICATION_PENDING, "PENDING"),
            (APPLICATION_REJECTED, "REJECTED"),
        ],
    )
    def test_not_approved_explains_status(self, status: str, code: str) -> None:
        outcome = VerificationOutcome(OutcomeKind.NOT_APPROVED, _app(status))
        assert outcome_message(outcome, "vega@example.org", JOIN_URL) == format_user_error(
            code, email="vega@example.org", join_url=JOIN_URL
        )

    def test_unknown_email(self) -> None:
        outcome = VerificationOutcome(OutcomeKind.NOT_APPROVED)
        message = outcome_message(outcome, "nobody@example.org", JOIN_URL)
        assert JOIN_URL in message
        assert "nobody@example.org" in message

    def test_conflict_and_outage(self) -> None:
        conflict = VerificationOutcome(OutcomeKind.CONFLICT, _app())
        outage = VerificationOutcome(OutcomeKind.UNAVAILABLE)
        assert outcome_message(conflict, "x@example.org", JOIN_URL) == format_user_error("LINKED_OTHER")
        assert outcome_message(outage, "x@example.org", JOIN_URL) == format_user_error("DB_TEMP_ERROR")

    def test_linked_uses_full_name(self) -> None:
        outcome = VerificationOutcome(OutcomeKind.LINKED, _app(), report=ProvisioningReport())
        assert outcome_message(outcome, "vega@example.org", JOIN_URL) == format_user_success(
            "VERIFIED", name="Vega Lyra"
        )

    def test_partial_access_is_flagged(self) -> None:
        report = ProvisioningReport(failed=["role:1"])
        outcome = VerificationOutcome(OutcomeKind.LINKED, _app(), report=report)
        assert outcome_message(outcome, "vega@example.org", JOIN_URL).endswith(PARTIAL_ACCESS_NOTE)

    def test_already_verified_with_restore(self) -> None:
        restored = VerificationOutcome(OutcomeKind.ALREADY_VERIFIED, _app(), restored=True)
        plain = VerificationOutcome(OutcomeKind.ALREADY_VERIFIED, _app())
        assert outcome_message(restored, "v@example.org", JOIN_URL) == format_user_success("ACCESS_RESTORED")
        assert outcome_message(plain, "v@example.org", JOIN_URL) == format_user_success("ALREADY_VERIFIED")


@pytest.mark.asyncio
async def test_verify_outside_guild_is_refused(mock_bot) -> None:
    cog = VerificationCog(mock_bot)
    interaction = make_interaction(make_user(42))

    await VerificationCog.verify.callback(cog, interaction, "vega@example.org")

    assert interaction.last_content == format_user_error("GUILD_ONLY")


@pytest.mark.asyncio
async def test_approve_command(mock_bot, guild) -> None:
    await seed_application("vega@example.org", status=APPLICATION_PENDING)
    cog = AdminCog(mock_bot)
    interaction = make_interaction(make_member(7, guild=guild, administrator=True))

    await AdminCog.approve.callback(cog, interaction, "  Vega@Example.org ")

    assert interaction.last_content == format_user_success("APPROVED", email="vega@example.org")
    found = await mock_bot.services.admin.applications.find_by_email("vega@example.org")
    assert found.value.status == APPLICATION_APPROVED


@pytest.mark.asyncio
async def test_approve_requires_admin(mock_bot, guild) -> None:
    await seed_application("vega@example.org", status=APPLICATION_PENDING)
    cog = AdminCog(mock_bot)
    interaction = make_interaction(make_member(7, guild=guild))

    await AdminCog.approve.callback(cog, interaction, "vega@example.org")

    assert interaction.last_content == format_user_error("PERMISSION")


@pytest.mark.asyncio
async def test_register_event_flow(mock_bot, guild) -> None:
    await seed_application("vega@example.org", discord_user_id=42)
    await seed_event("star-party", title="Star Party", date="2099-01-15")
    cog = EventsCog(mock_bot)

    first = make_interaction(make_member(42, guild=guild))
    await EventsCog.register_event.callback(cog, first, " Star-Party ")
    assert first.last_content == format_user_success(
        "REGISTERED", title="Star Party", date="2099-01-15"
    )

    again = make_interaction(make_member(42, guild=guild))
    await EventsCog.register_event.callback(cog, again, "star-party")
    assert again.last_content == format_user_error("ALREADY_REGISTERED", slug="star-party")


@pytest.mark.asyncio
async def test_register_requires_verified_member(mock_bot, guild) -> None:
    await seed_event("star-party")
    cog = EventsCog(mock_bot)
    interaction = make_interaction(make_member(99, guild=guild))

    await EventsCog.register_event.callback(cog, interaction, "star-party")

    assert interaction.last_content == format_user_error("NOT_LINKED")
