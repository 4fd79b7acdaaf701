from datetime import datetime, timezone
from typing import Optional


def get_current_timestamp_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def timestamp_ms_to_iso(ts: Optional[int]) -> Optional[str]:
    """Render an epoch-milliseconds timestamp as an ISO-8601 UTC string."""
    if ts is None:
        return None
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc).isoformat()
