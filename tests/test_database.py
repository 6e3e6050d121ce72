"""Document store behaviour of the Database layer."""

import pytest

from services.db.database import Database
from services.db.models import Event, MembershipApplication
from services.db.repository import EventRepository, MembershipRepository
from utils.errors import DirectoryError

COLLECTION = "testDocs"


@pytest.mark.asyncio
async def test_add_and_get_roundtrip_injects_id(temp_db) -> None:
    doc_id = await Database.add(COLLECTION, {"id": "ignored", "name": "Vega", "mag": 0.03})

    doc = await Database.get(COLLECTION, doc_id)

    assert doc == {"id": doc_id, "name": "Vega", "mag": 0.03}
    assert await Database.get(COLLECTION, "missing") is None


@pytest.mark.asyncio
async def test_query_filters_on_fields(temp_db) -> None:
    await Database.add(COLLECTION, {"name": "Vega", "kind": "star", "visible": True})
    await Database.add(COLLECTION, {"name": "M31", "kind": "galaxy", "visible": False})
    await Database.add(COLLECTION, {"name": "Sirius", "kind": "star", "owner": None})
    await Database.add("otherDocs", {"name": "Rigel", "kind": "star"})

    stars = await Database.query(COLLECTION, {"kind": "star"})
    visible = await Database.query(COLLECTION, {"visible": True})
    unowned = await Database.query(COLLECTION, {"owner": None})

    assert [d["name"] for d in stars] == ["Vega", "Sirius"]
    assert [d["name"] for d in visible] == ["Vega"]
    assert {d["name"] for d in unowned} == {"Vega", "M31", "Sirius"}
    assert await Database.count(COLLECTION, {"kind": "star"}) == 2


@pytest.mark.asyncio
async def test_query_ordering_and_limit(temp_db) -> None:
    for name, mag in [("Deneb", 1.25), ("Vega", 0.03), ("Altair", 0.77)]:
        await Database.add(COLLECTION, {"name": name, "mag": mag})

    ascending = await Database.query(COLLECTION, order_by="mag")
    brightest = await Database.query(COLLECTION, order_by="mag", limit=1)
    descending = await Database.query(COLLECTION, order_by="mag", descending=True)

    assert [d["name"] for d in ascending] == ["Vega", "Altair", "Deneb"]
    assert [d["name"] for d in brightest] == ["Vega"]
    assert [d["name"] for d in descending] == ["Deneb", "Altair", "Vega"]


@pytest.mark.asyncio
async def test_invalid_field_name_is_rejected(temp_db) -> None:
    with pytest.raises(DirectoryError):
        await Database.query(COLLECTION, {"name') OR 1=1 --": "x"})


@pytest.mark.asyncio
async def test_update_merges_fields(temp_db) -> None:
    doc_id = await Database.add(COLLECTION, {"name": "Vega", "mag": 0.03})

    assert await Database.update(COLLECTION, doc_id, {"constellation": "Lyra"}) is True
    assert await Database.update(COLLECTION, "missing", {"x": 1}) is False

    doc = await Database.get(COLLECTION, doc_id)
    assert doc["constellation"] == "Lyra"
    assert doc["mag"] == 0.03


@pytest.mark.asyncio
async def test_update_if_respects_condition(temp_db) -> None:
    doc_id = await Database.add(COLLECTION, {"claimedBy": None})

    def unclaimed(doc):
        return not doc.get("claimedBy")

    applied, doc = await Database.update_if(COLLECTION, doc_id, {"claimedBy": "a"}, unclaimed)
    assert applied is True
    assert doc["claimedBy"] == "a"

    applied, doc = await Database.update_if(COLLECTION, doc_id, {"claimedBy": "b"}, unclaimed)
    assert applied is False
    assert doc["claimedBy"] == "a"

    applied, doc = await Database.update_if(COLLECTION, "missing", {"claimedBy": "b"}, unclaimed)
    assert (applied, doc) == (False, None)


@pytest.mark.asyncio
async def test_repositories_store_typed_records(temp_db) -> None:
    application = MembershipApplication(
        id="", email="vega@example.org", status="approved", full_name="Vega Lyra", city="Imphal"
    )
    event = Event(id="", slug="star-party", title="Star Party", date="2099-01-15", capacity=20)

    stored_app = await MembershipRepository().add(application)
    stored_event = await EventRepository().add(event)

    found_app = (await MembershipRepository().find_by_email("vega@example.org")).value
    found_event = (await EventRepository().get_by_slug("Star-Party")).value
    assert found_app.id == stored_app.value
    assert found_app.email == "vega@example.org"
    assert found_app.full_name == "Vega Lyra"
    assert found_app.discord_user_id is None
    assert found_event.id == stored_event.value
    assert found_event.capacity == 20
    assert found_event.is_open
