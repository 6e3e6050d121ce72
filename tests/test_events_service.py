"""Event listing and registration rules."""

from datetime import date

import pytest
import pytest_asyncio

from services.db.models import EVENT_CLOSED
from tests.factories import make_member, seed_application, seed_event
from utils.types import Err


@pytest_asyncio.fixture
async def verified_member(temp_db):
    await seed_application("star@example.org", discord_user_id=42)
    return make_member(42)


@pytest.mark.asyncio
async def test_list_upcoming_skips_past_and_closed(events_service) -> None:
    await seed_event("old-meet", date="2020-01-01")
    await seed_event("closed-meet", date="2099-02-01", status=EVENT_CLOSED)
    await seed_event("late-meet", date="2099-03-01")
    await seed_event("soon-meet", date="2099-01-01")

    result = await events_service.list_upcoming(today=date(2024, 6, 1))

    assert [e.slug for e in result.value] == ["soon-meet", "late-meet"]


@pytest.mark.asyncio
async def test_register_verified_member(events_service, verified_member) -> None:
    await seed_event("star-party", title="Star Party", capacity=10)

    result = await events_service.register(verified_member, " Star-Party ")

    assert result.ok
    event, registration = result.value
    assert event.title == "Star Party"
    assert registration.id
    assert registration.email == "star@example.org"
    assert registration.discord_user_id == "42"

    mine = await events_service.registrations_for_member(verified_member)
    assert [r.event_slug for r in mine.value] == ["star-party"]


@pytest.mark.asyncio
async def test_unverified_member_cannot_register(events_service) -> None:
    await seed_event("star-party")
    result = await events_service.register(make_member(99), "star-party")
    assert isinstance(result, Err)
    assert result.code == "NOT_LINKED"


@pytest.mark.asyncio
async def test_unknown_event(events_service, verified_member) -> None:
    result = await events_service.register(verified_member, "nope")
    assert isinstance(result, Err)
    assert result.code == "EVENT_NOT_FOUND"


@pytest.mark.asyncio
async def test_closed_event(events_service, verified_member) -> None:
    await seed_event("star-party", status=EVENT_CLOSED)
    result = await events_service.register(verified_member, "star-party")
    assert isinstance(result, Err)
    assert result.code == "EVENT_CLOSED"


@pytest.mark.asyncio
async def test_duplicate_registration(events_service, verified_member) -> None:
    await seed_event("star-party")
    await events_service.register(verified_member, "star-party")
    result = await events_service.register(verified_member, "star-party")
    assert isinstance(result, Err)
    assert result.code == "ALREADY_REGISTERED"


@pytest.mark.asyncio
async def test_capacity_is_enforced(events_service, verified_member) -> None:
    await seed_event("tiny-meet", capacity=1)
    await seed_application("other@example.org", discord_user_id=43)

    first = await events_service.register(verified_member, "tiny-meet")
    second = await events_service.register(make_member(43), "tiny-meet")

    assert first.ok
    assert isinstance(second, Err)
    assert second.code == "EVENT_FULL"


@pytest.mark.asyncio
async def test_registrations_for_event(events_service, verified_member) -> None:
    await seed_event("star-party")
    await events_service.register(verified_member, "star-party")

    result = await events_service.registrations_for_event("star-party")
    assert [r.discord_user_id for r in result.value] == ["42"]

    missing = await events_service.registrations_for_event("ghost")
    assert isinstance(missing, Err)
    assert missing.code == "EVENT_NOT_FOUND"
