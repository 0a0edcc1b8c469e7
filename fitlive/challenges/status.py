"""
Challenge status derivation.

A challenge's temporal status depends only on (now, start, end):
  - now before start  -> Upcoming, 0%
  - now after end     -> Completed, 100%
  - otherwise         -> Ongoing, share of the window already elapsed
Date-only values mean midnight at the start of that day.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable, Optional, Union

UPCOMING = "Upcoming"
ONGOING = "Ongoing"
COMPLETED = "Completed"

STATUSES = (ONGOING, UPCOMING, COMPLETED)

DateLike = Union[date, datetime, str]


class MissingChallengeDate(ValueError):
    """A challenge has no start or end date; there is no sensible default."""


@dataclass(frozen=True)
class ChallengeStatus:
    status: str
    progress_percentage: int


def to_datetime(value: Optional[DateLike], field: str = "date") -> datetime:
    """
    Coerce a date, datetime or ISO-8601 string to a naive datetime.

    Aware values are converted to UTC first. Raises MissingChallengeDate for
    None/empty input and ValueError for strings that do not parse.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingChallengeDate(f"{field} is missing")

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"{field} is not an ISO date: {value!r}") from exc

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    raise ValueError(f"{field} has unsupported type {type(value).__name__}")


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def derive_challenge_status(
    start: Optional[DateLike],
    end: Optional[DateLike],
    now: Optional[DateLike] = None,
) -> ChallengeStatus:
    start_dt = to_datetime(start, "start_date")
    end_dt = to_datetime(end, "end_date")
    now_dt = to_datetime(now, "now") if now is not None else datetime.now()

    if now_dt < start_dt:
        return ChallengeStatus(UPCOMING, 0)
    if now_dt > end_dt:
        return ChallengeStatus(COMPLETED, 100)

    total = (end_dt - start_dt).total_seconds()
    if total <= 0:
        # Zero-length window and now sits exactly on it
        return ChallengeStatus(ONGOING, 100)

    elapsed = (now_dt - start_dt).total_seconds()
    pct = _round_half_up(100 * elapsed / total)
    return ChallengeStatus(ONGOING, max(0, min(100, pct)))


def filter_by_status(challenges: Iterable, status: str, now: Optional[DateLike] = None) -> list:
    """Keep the challenges (anything with start_date/end_date) currently in *status*."""
    if status not in STATUSES:
        raise ValueError(f"Unknown challenge status: {status!r}")
    return [
        c for c in challenges
        if derive_challenge_status(c.start_date, c.end_date, now).status == status
    ]
