"""
Canonical schema definition (version=1).

The member directory is a document store: every collection shares one table,
documents are JSON objects addressed by (collection, doc_id) and queried with
json_extract on named fields.
"""

import aiosqlite

from utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

# Collections the bot reads and writes
MEMBERSHIP_APPLICATIONS = "membershipApplications"
DISCORD_ADMINS = "discordAdmins"
EVENTS = "events"
EVENT_REGISTRATIONS = "eventRegistrations"

COLLECTIONS = (
    MEMBERSHIP_APPLICATIONS,
    DISCORD_ADMINS,
    EVENTS,
    EVENT_REGISTRATIONS,
)

# Fields looked up on every verification/privilege check
_INDEXED_FIELDS = {
    MEMBERSHIP_APPLICATIONS: ("email", "discordUserId"),
    DISCORD_ADMINS: ("userId",),
    EVENTS: ("slug",),
    EVENT_REGISTRATIONS: ("eventSlug", "discordUserId"),
}


async def init_schema(db: aiosqlite.Connection) -> None:
    """
    Initialize the directory schema.

    Args:
        db: An open database connection
    """
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            applied_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )
    await db.execute(
        "INSERT OR IGNORE INTO schema_migrations (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )

    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS documents (
            collection TEXT NOT NULL,
            doc_id TEXT NOT NULL,
            data TEXT NOT NULL,
            created_at INTEGER DEFAULT (strftime('%s','now')),
            updated_at INTEGER DEFAULT (strftime('%s','now')),
            PRIMARY KEY (collection, doc_id)
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection, created_at)"
    )

    for collection, fields in _INDEXED_FIELDS.items():
        for field in fields:
            await db.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{collection}_{field} "
                f"ON documents(collection, json_extract(data, '$.{field}'))"
            )

    await db.commit()
    logger.debug("Directory schema ensured (version %s)", SCHEMA_VERSION)
