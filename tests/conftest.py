import os
import sys
import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

# Ensure project root is on sys.path for CI environments where
# Python might not automatically include it.
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep test runs from writing into the repository's logs/ directory
os.environ.setdefault("LOG_FILE", str(Path(tempfile.gettempdir()) / "mas-bot-tests" / "bot.log"))

from config.settings import BotSettings
from helpers.provisioning import AccessProvisioner
from services.admin_service import AdminService
from services.db.database import Database
from services.db.repository import AdminRepository, EventRepository, MembershipRepository
from services.events_service import EventsService
from services.privileges import PrivilegeResolver
from services.verification_service import VerificationService
from tests.factories import (
    MEMBER_ROLE_ID,
    RESTRICTED_CHANNEL_IDS,
    SUPER_ADMIN_ID,
    FakeGuild,
    make_channel,
    make_role,
)


@pytest_asyncio.fixture()
async def temp_db(tmp_path):
    """Initialize Database to a temporary file for isolation across tests."""
    orig_path = Database._db_path
    orig_initialized = Database._initialized

    Database._initialized = False
    db_file = tmp_path / "directory.db"
    await Database.initialize(str(db_file))

    assert Database._initialized is True
    assert Database._db_path == str(db_file)

    yield str(db_file)

    Database._db_path = orig_path
    Database._initialized = orig_initialized


@pytest.fixture
def guild() -> FakeGuild:
    """A guild with the member role and two restricted channels."""
    return FakeGuild(
        roles=[make_role(MEMBER_ROLE_ID)],
        channels=[make_channel(cid, name=f"members-{i}") for i, cid in enumerate(RESTRICTED_CHANNEL_IDS)],
    )


@pytest.fixture
def settings() -> BotSettings:
    return BotSettings(
        discord_token="token",
        guild_id=123,
        member_role_id=MEMBER_ROLE_ID,
        restricted_channel_ids=RESTRICTED_CHANNEL_IDS,
        super_admin_ids=frozenset({SUPER_ADMIN_ID}),
        webhook_url="https://discord.com/api/webhooks/1/abc",
    )


@pytest.fixture
def provisioner() -> AccessProvisioner:
    return AccessProvisioner(MEMBER_ROLE_ID, RESTRICTED_CHANNEL_IDS)


@pytest.fixture
def resolver(temp_db) -> PrivilegeResolver:
    return PrivilegeResolver({SUPER_ADMIN_ID}, AdminRepository())


@pytest.fixture
def verification(temp_db, provisioner) -> VerificationService:
    return VerificationService(provisioner, MembershipRepository())


@pytest.fixture
def admin_service(resolver) -> AdminService:
    return AdminService(resolver, AdminRepository(), MembershipRepository())


@pytest.fixture
def events_service(temp_db) -> EventsService:
    return EventsService(EventRepository(), MembershipRepository())


@pytest.fixture
def services(settings, resolver, verification, admin_service, events_service):
    """A container stand-in exposing the attributes cogs read."""
    return SimpleNamespace(
        settings=settings,
        privileges=resolver,
        verification=verification,
        admin=admin_service,
        events=events_service,
    )


@pytest.fixture
def mock_bot(services):
    """A minimal bot-like object for cog tests."""
    return SimpleNamespace(services=services, guilds=[])
