"""
Centralized message formatting for user-facing Discord replies.

Every rejection tells the member why and what to do next, and never exposes
internal technical details.

Format: emoji + **Bold Title** + newline + actionable body
"""

from utils.logging import get_logger
from utils.types import Err, ErrorKind

logger = get_logger(__name__)

_ERROR_MESSAGES = {
    "NOT_APPROVED": (
        "❌ **No approved membership**\n"
        "We couldn't find an approved application for `{email}`. "
        "Apply at {join_url} or check the email you used."
    ),
    "PENDING": (
        "⏳ **Application under review**\n"
        "Your application for `{email}` hasn't been approved yet. "
        "You can verify once an admin approves it."
    ),
    "REJECTED": (
        "❌ **Application not approved**\n"
        "The application for `{email}` was not approved. "
        "Contact an admin or reapply at {join_url}."
    ),
    "LINKED_OTHER": (
        "❌ **Already linked**\n"
        "This membership is linked to another Discord account. "
        "Contact an admin if this is a mistake."
    ),
    "ADMIN_LINK_CONFLICT": (
        "❌ **Already linked**\n"
        "`{email}` is linked to another Discord account. Nothing was changed."
    ),
    "NOT_LINKED": (
        "❌ **Not verified**\n"
        "Your Discord account isn't linked to a membership. Use `/verify` with your membership email."
    ),
    "INVALID_EMAIL": "❌ **Invalid email**\n`{email}` doesn't look like an email address.",
    "DB_TEMP_ERROR": (
        "❌ **Temporary issue**\n"
        "The member directory is unavailable. Please try again in a moment."
    ),
    "PERMISSION": "❌ You don't have permission to use this command.",
    "SUPER_ADMIN_REQUIRED": "❌ Only super-admins can manage the admin list.",
    "GUILD_ONLY": "❌ **Server only**\nUse this command inside the community server.",
    "APPLICATION_NOT_FOUND": "❌ **Not found**\nNo membership application exists for `{email}`.",
    "APPLICATION_LINKED": (
        "❌ **Member already verified**\n"
        "`{email}` is linked to a Discord account and can't be rejected here."
    ),
    "ALREADY_ADMIN": "⚠️ **Already an admin**\n{user_mention} already has an active admin grant.",
    "ADMIN_NOT_FOUND": "❌ **Not an admin**\n{user_mention} has no active admin grant.",
    "ADMIN_PROTECTED": (
        "❌ **Protected admin**\n"
        "Super-admins can't be removed with this command."
    ),
    "EVENT_NOT_FOUND": "❌ **Unknown event**\nNo event with slug `{slug}`. Use `/events` to see what's on.",
    "EVENT_CLOSED": "❌ **Registration closed**\nRegistration for `{slug}` is closed.",
    "EVENT_FULL": "❌ **Event full**\n`{slug}` has reached its capacity.",
    "ALREADY_REGISTERED": "⚠️ **Already registered**\nYou're already registered for `{slug}`.",
    "NO_DAILY_TARGET": (
        "❌ **Nowhere to post**\n"
        "Neither a webhook nor a daily channel is configured."
    ),
    "DAILY_THROTTLED": (
        "⏳ **Already posted**\n"
        "A daily update went out in the last {minutes} minutes. Try again later."
    ),
    "DAILY_FAILED": "❌ **Post failed**\nThe daily update couldn't be delivered. The issue was logged.",
    "INVALID_INPUT": "❌ **Invalid input**\n{detail}",
    "CONFLICT": "❌ **Not allowed**\n{detail}",
    "UNKNOWN": "❌ **Something went wrong**\nAn unexpected error occurred. The issue was logged.",
}

_KIND_DEFAULTS = {
    ErrorKind.VALIDATION: "INVALID_INPUT",
    ErrorKind.CONFLICT: "CONFLICT",
    ErrorKind.UNAVAILABLE: "DB_TEMP_ERROR",
    ErrorKind.PERMISSION: "PERMISSION",
}


def format_user_error(code: str, **kwargs) -> str:
    """
    Format a user-friendly error message based on an error code.

    Args:
        code: Error code identifying the type of error
        **kwargs: Dynamic values to insert into error messages
            - email: Membership email (verification/application codes)
            - join_url: Where to apply (NOT_APPROVED, REJECTED)
            - slug: Event slug (event codes)
            - user_mention: Target user mention (admin grant codes)
            - minutes: Dedup window (DAILY_THROTTLED)

    Returns:
        User-friendly error message string

    Examples:
        >>> format_user_error("EVENT_FULL", slug="star-party")
        "❌ **Event full**\\n`star-party` has reached its capacity."
    """
    if code not in _ERROR_MESSAGES:
        logger.warning(f"Unknown error code used in format_user_error: {code}")

    message = _ERROR_MESSAGES.get(code, _ERROR_MESSAGES["UNKNOWN"])

    try:
        return message.format(**kwargs)
    except KeyError as e:
        # Missing placeholder value; keep the message readable
        return message.replace("{" + str(e).strip("'") + "}", "???")


def format_result_error(err: Err, **kwargs) -> str:
    """Map an ``Err`` from a service call to its user-facing message."""
    code = err.code or _KIND_DEFAULTS.get(err.kind, "UNKNOWN")
    kwargs.setdefault("detail", err.message)
    return format_user_error(code, **kwargs)


def format_user_success(code: str, **kwargs) -> str:
    """
    Format a user-friendly success message based on a success code.

    Format: ✅ + **Bold Title** + \\n + confirmation sentence
    """
    success_messages = {
        "VERIFIED": "✅ **Verified**\nWelcome aboard, {name}! Your member access has been granted.",
        "ALREADY_VERIFIED": "✅ **Already verified**\nYour account is already linked and has full access.",
        "ACCESS_RESTORED": "✅ **Already verified**\nYour account is linked; missing access has been restored.",
        "ADMIN_LINKED": "✅ **Linked**\n{user_mention} is now linked to `{email}`.",
        "APPROVED": "✅ **Approved**\nThe application for `{email}` is approved.",
        "REJECTED": "✅ **Rejected**\nThe application for `{email}` was rejected.",
        "ADMIN_ADDED": "✅ **Admin added**\n{user_mention} can now use admin commands.",
        "ADMIN_REMOVED": "✅ **Admin removed**\n{user_mention} no longer has admin access.",
        "REGISTERED": "✅ **Registered**\nYou're registered for **{title}** on {date}.",
        "DAILY_POSTED": "✅ **Posted**\nThe daily astronomy update has been sent.",
    }

    message = success_messages.get(code, "✅ **Success**\nOperation completed.")

    try:
        return message.format(**kwargs)
    except KeyError:
        return "✅ **Success**\nOperation completed."
