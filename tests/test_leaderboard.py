from datetime import datetime, timezone

from fitlive.challenges.leaderboard import LeaderboardEntry, rank_participants, top_n
from fitlive.challenges.progress import ProgressRecord


def entry(user_id, username, pct, completed=None):
    return LeaderboardEntry(
        user_id=user_id,
        username=username,
        progress=ProgressRecord(tasks_completed=0, progress_percentage=pct),
        completion_time=completed,
    )


def names(ranked):
    return [e.username for e in ranked]


def test_highest_percentage_first():
    ranked = rank_participants([entry(1, "a", 20), entry(2, "b", 90), entry(3, "c", 55)])
    assert names(ranked) == ["b", "c", "a"]
    assert [e.rank for e in ranked] == [1, 2, 3]


def test_earlier_completion_wins_a_tie():
    ranked = rank_participants([
        entry(1, "late", 100, datetime(2024, 1, 5)),
        entry(2, "early", 100, datetime(2024, 1, 2)),
    ])
    assert names(ranked) == ["early", "late"]


def test_timestamped_entry_beats_null_at_same_percentage():
    with_time = entry(1, "zed", 80, datetime(2024, 1, 2))
    without_time = entry(2, "amy", 80)
    assert names(rank_participants([without_time, with_time])) == ["zed", "amy"]
    assert names(rank_participants([with_time, without_time])) == ["zed", "amy"]


def test_remaining_ties_break_on_username_then_id():
    ranked = rank_participants([entry(3, "Bob", 40), entry(1, "alice", 40), entry(2, "bob", 40)])
    assert [e.user_id for e in ranked] == [1, 2, 3]


def test_ranks_on_stored_percentage_not_displayed():
    # both show as 79, but 79.9 is further along than 79.2
    ranked = rank_participants([
        entry(1, "a", 79.9, datetime(2024, 1, 3)),
        entry(2, "b", 79.2, datetime(2024, 1, 1)),
    ])
    assert names(ranked) == ["a", "b"]
    assert [e.progress_percentage for e in ranked] == [79, 79]


def test_mixed_naive_and_aware_timestamps():
    ranked = rank_participants([
        entry(1, "a", 50, datetime(2024, 1, 2, tzinfo=timezone.utc)),
        entry(2, "b", 50, datetime(2024, 1, 1)),
    ])
    assert names(ranked) == ["b", "a"]


def test_ranking_is_idempotent():
    entries = [
        entry(1, "a", 80), entry(2, "b", 80, datetime(2024, 1, 2)),
        entry(3, "c", 100, datetime(2024, 1, 9)), entry(4, "d", 0),
    ]
    once = rank_participants(entries)
    assert rank_participants(once) == once


def test_top_n_and_badges():
    ranked = rank_participants([entry(i, f"u{i}", i * 10) for i in range(1, 6)])
    top = top_n(ranked, 3)
    assert [e.badge for e in top] == ["trophy", "medal-outline", "medal"]
    assert ranked[3].badge is None
    assert top_n(ranked, 0) == []
    assert top_n([], 3) == []


def test_to_dict():
    data = rank_participants([entry(7, "kim", 66.6, datetime(2024, 1, 2, 10, 30))])[0].to_dict()
    assert data["rank"] == 1
    assert data["progress_percentage"] == 66
    assert data["completion_time"] == "2024-01-02T10:30:00"
    assert data["profile_picture"] == ""
