from datetime import datetime, timezone as dt_timezone, tzinfo
import logging
import uuid
from zoneinfo import ZoneInfo

from ..core.tool import tool

logger = logging.getLogger(__name__)

TIMEZONE_ABBREVIATIONS = {
    "IST": "Asia/Kolkata",
    "EST": "America/New_York",
    "PST": "America/Los_Angeles",
    "CST": "America/Chicago",
    "MST": "America/Denver",
    "UTC": "UTC",
    "GMT": "Etc/GMT",
}


def resolve_timezone(name: str | None) -> tzinfo:
    """Resolve a zone name or common abbreviation; None gives the host's local zone.

    Unknown names are handed to zoneinfo unchanged and raise there.
    """
    if not name:
        return datetime.now().astimezone().tzinfo
    return ZoneInfo(TIMEZONE_ABBREVIATIONS.get(name.upper(), name))


def _format_for(now: datetime, tz: tzinfo) -> dict[str, str]:
    local = now.astimezone(tz)
    return {
        "date": local.strftime("%x"),
        "time": local.strftime("%X"),
        "timezone": getattr(tz, "key", None) or local.tzname() or str(tz),
    }


@tool
def current_datetime(timezone: str | None = None) -> dict:
    """Return the current date/time for timestamping reports and responses.

    Args:
        timezone: Optional timezone (e.g., 'UTC', 'IST', 'EST', 'PST', 'Asia/Kolkata', 'America/New_York')
    """
    now = datetime.now(tz=dt_timezone.utc)
    requested = resolve_timezone(timezone)

    return {
        "success": True,
        "iso_utc": now.isoformat().replace("+00:00", "Z"),
        "epoch_seconds": int(now.timestamp()),
        "local": _format_for(now, resolve_timezone(None)),
        "requested": _format_for(now, requested),
    }


@tool(returns="string")
def uuid_generator() -> dict:
    """Generate a unique identifier for correlation IDs or request tracking."""
    return {"success": True, "uuid": str(uuid.uuid4())}
