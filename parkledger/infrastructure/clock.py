"""System Clock — wall-clock implementation of core Clock protocol."""

from datetime import datetime, timezone


class SystemClock:
    """Current time as an aware UTC datetime."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
