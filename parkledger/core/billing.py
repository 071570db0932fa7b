"""Billing Engine — elapsed time and cost for a parking session. Pure, no IO.

Invariants:
    - elapsed_minutes is whole minutes, floored, never negative (clock skew clamps to 0)
    - cost = round(elapsed / 60 * rate, 2) with ROUND_HALF_UP, always a Decimal
    - cost is monotonically non-decreasing in the reference time
    - `now` is always passed in: callers freeze it for deterministic results

Design Decisions:
    - Naive datetimes are read as UTC: SQLite returns DateTime(timezone=True)
      columns without tzinfo
    - Numerator multiplied before dividing by 60 so exact half-cent values
      round up instead of drifting below the boundary
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from parkledger.core.repository_protocols import SessionLike


MINUTES_PER_HOUR: int = 60
CENT = Decimal("0.01")


def as_utc(moment: datetime) -> datetime:
    """Normalize to an aware UTC datetime."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def to_decimal(value) -> Decimal:
    """Coerce int/float/str/Decimal to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def elapsed_minutes(entry_time: datetime, reference_time: datetime) -> int:
    """Whole minutes between entry and reference, clamped at zero."""
    delta = as_utc(reference_time) - as_utc(entry_time)
    minutes = int(delta.total_seconds() // 60)
    return max(0, minutes)


def cost_for_minutes(minutes: int, rate_per_hour) -> Decimal:
    """Cost of `minutes` at `rate_per_hour`, rounded half-up to cents."""
    if minutes <= 0:
        return Decimal("0.00")
    raw = Decimal(minutes) * to_decimal(rate_per_hour) / MINUTES_PER_HOUR
    return raw.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_cost(
    entry_time: datetime, exit_time_or_now: datetime, rate_per_hour,
) -> Decimal:
    """Cost of a stay from entry to exit (or to `now` while still parked)."""
    return cost_for_minutes(
        elapsed_minutes(entry_time, exit_time_or_now), rate_per_hour,
    )


def format_duration(minutes: int) -> str:
    """Render minutes as "{h}h {m}m", e.g. 582 -> "9h 42m"."""
    minutes = max(0, int(minutes))
    hours, rem = divmod(minutes, MINUTES_PER_HOUR)
    return f"{hours}h {rem}m"


def reference_time(session: SessionLike, now: datetime) -> datetime:
    """exit_time once the session has ended, `now` while it is still running."""
    return session.exit_time if session.exit_time is not None else now


def session_duration_minutes(session: SessionLike, now: datetime) -> int:
    return elapsed_minutes(session.entry_time, reference_time(session, now))


def session_cost(session: SessionLike, now: datetime) -> Decimal:
    return compute_cost(
        session.entry_time, reference_time(session, now), session.rate_per_hour,
    )
