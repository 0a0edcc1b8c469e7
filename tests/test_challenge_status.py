from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from fitlive.challenges.status import (
    UPCOMING, ONGOING, COMPLETED, ChallengeStatus, MissingChallengeDate,
    derive_challenge_status, filter_by_status, to_datetime,
)


def test_midpoint_of_ten_day_window_is_half_done():
    result = derive_challenge_status("2024-01-01", "2024-01-11", "2024-01-06")
    assert result == ChallengeStatus(ONGOING, 50)


def test_before_start_is_upcoming():
    assert derive_challenge_status("2024-01-01", "2024-01-11", "2023-12-31") == ChallengeStatus(UPCOMING, 0)


def test_after_end_is_completed():
    assert derive_challenge_status("2024-01-01", "2024-01-11", "2024-01-11T00:00:01") == ChallengeStatus(COMPLETED, 100)


def test_window_edges_are_ongoing():
    assert derive_challenge_status("2024-01-01", "2024-01-11", "2024-01-01") == ChallengeStatus(ONGOING, 0)
    assert derive_challenge_status("2024-01-01", "2024-01-11", "2024-01-11") == ChallengeStatus(ONGOING, 100)


def test_zero_length_window_containing_now():
    assert derive_challenge_status("2024-01-01", "2024-01-01", "2024-01-01") == ChallengeStatus(ONGOING, 100)


def test_percentage_rounds_half_up():
    # 1 day of 8 elapsed = 12.5%
    assert derive_challenge_status("2024-01-01", "2024-01-09", "2024-01-02").progress_percentage == 13


def test_accepts_dates_datetimes_and_zulu_strings():
    by_date = derive_challenge_status(date(2024, 1, 1), date(2024, 1, 11), date(2024, 1, 6))
    by_dt = derive_challenge_status(datetime(2024, 1, 1), datetime(2024, 1, 11), datetime(2024, 1, 6))
    by_str = derive_challenge_status("2024-01-01T00:00:00Z", "2024-01-11T00:00:00Z", "2024-01-06T00:00:00Z")
    assert by_date == by_dt == by_str


def test_aware_datetimes_are_compared_in_utc():
    plus8 = timezone(timedelta(hours=8))
    # 08:00 at +08:00 is midnight UTC
    assert to_datetime(datetime(2024, 1, 1, 8, tzinfo=plus8)) == datetime(2024, 1, 1)


def test_missing_dates_fail_loudly():
    with pytest.raises(MissingChallengeDate):
        derive_challenge_status(None, "2024-01-11", "2024-01-06")
    with pytest.raises(MissingChallengeDate):
        derive_challenge_status("2024-01-01", "", "2024-01-06")


def test_malformed_dates_raise_value_error():
    with pytest.raises(ValueError):
        derive_challenge_status("01/01/2024", "2024-01-11", "2024-01-06")


def test_status_matches_window_for_every_hour():
    start = datetime(2024, 2, 27)
    end = datetime(2024, 3, 3, 12)
    now = start - timedelta(hours=30)
    while now <= end + timedelta(hours=30):
        result = derive_challenge_status(start, end, now)
        if now < start:
            assert result.status == UPCOMING
        elif now > end:
            assert result.status == COMPLETED
        else:
            assert result.status == ONGOING
            assert 0 <= result.progress_percentage <= 100
        # pure: same inputs, same answer
        assert derive_challenge_status(start, end, now) == result
        now += timedelta(hours=1)


def test_filter_by_status():
    challenges = [
        SimpleNamespace(id=1, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)),
        SimpleNamespace(id=2, start_date=date(2024, 3, 1), end_date=date(2024, 3, 31)),
        SimpleNamespace(id=3, start_date=date(2023, 1, 1), end_date=date(2023, 1, 31)),
    ]
    now = "2024-01-15"
    assert [c.id for c in filter_by_status(challenges, ONGOING, now)] == [1]
    assert [c.id for c in filter_by_status(challenges, UPCOMING, now)] == [2]
    assert [c.id for c in filter_by_status(challenges, COMPLETED, now)] == [3]

    with pytest.raises(ValueError):
        filter_by_status(challenges, "Finished", now)
