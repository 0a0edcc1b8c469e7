"""
Leaderboard ranking for one challenge.

Order:
  1. stored progress percentage, highest first (flooring is for display only)
  2. completion time, earliest first; entries with a time rank above entries without
  3. username (case-insensitive), then user id, so equal entries still get a fixed order
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, List, Optional

from fitlive.challenges.progress import ProgressRecord
from fitlive.challenges.status import to_datetime

BADGES = {1: "trophy", 2: "medal-outline", 3: "medal"}


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: int
    username: str
    progress: ProgressRecord
    completion_time: Optional[datetime] = None
    profile_picture: Optional[str] = None
    rank: Optional[int] = None

    @property
    def progress_percentage(self) -> int:
        return self.progress.display_percentage

    @property
    def badge(self) -> Optional[str]:
        return BADGES.get(self.rank) if self.rank else None

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "badge": self.badge,
            "user_id": self.user_id,
            "username": self.username,
            "profile_picture": self.profile_picture or "",
            "progress_percentage": self.progress_percentage,
            "tasks_completed": self.progress.tasks_completed,
            "completion_time": self.completion_time.isoformat() if self.completion_time else None,
        }


def _sort_key(entry: LeaderboardEntry):
    # Normalise so naive and aware timestamps compare
    completed = to_datetime(entry.completion_time, "completion_time") if entry.completion_time else None
    return (
        -entry.progress.progress_percentage,
        completed is None,
        completed or datetime.min,
        (entry.username or "").lower(),
        entry.user_id,
    )


def rank_participants(entries: Iterable[LeaderboardEntry]) -> List[LeaderboardEntry]:
    ranked = sorted(entries, key=_sort_key)
    return [replace(entry, rank=i) for i, entry in enumerate(ranked, start=1)]


def top_n(ranked: List[LeaderboardEntry], n: int) -> List[LeaderboardEntry]:
    return ranked[:max(0, n)]
