from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form every stored timestamp uses."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
