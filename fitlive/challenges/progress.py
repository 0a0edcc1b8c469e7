"""
Participant progress records.

The progress column holds JSON written by several generations of clients, so
every read goes through parse_progress(), which never raises: anything it
cannot understand becomes the zeroed record and is reported as a default.
"""
import json
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from fitlive.core.logging import get_logger

logger = get_logger(__name__, "PROGRESS")

PARSE_OK = "ok"
PARSE_DEFAULT = "default"


@dataclass(frozen=True)
class ProgressRecord:
    tasks_completed: int = 0
    progress_percentage: float = 0.0
    current_task: Optional[int] = None

    @property
    def display_percentage(self) -> int:
        """Whole percent shown to users, rounded down."""
        return int(math.floor(self.progress_percentage))

    @property
    def is_complete(self) -> bool:
        return self.display_percentage >= 100

    def to_dict(self) -> dict:
        return {
            "tasksCompleted": self.tasks_completed,
            "progressPercentage": self.progress_percentage,
            "current_task": self.current_task,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


ZERO_PROGRESS = ProgressRecord()


@dataclass(frozen=True)
class ParsedProgress:
    kind: str  # PARSE_OK | PARSE_DEFAULT
    record: ProgressRecord

    @property
    def is_default(self) -> bool:
        return self.kind == PARSE_DEFAULT


def _number(value: Any, cast):
    # bool is an int subclass; a JSON true is not a count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("number is not finite")
    return cast(value)


def parse_progress(raw: Any) -> ParsedProgress:
    """Parse a stored progress payload (JSON text, dict or None)."""
    if raw is None or raw == "":
        return ParsedProgress(PARSE_DEFAULT, ZERO_PROGRESS)

    data = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"Unparsable progress JSON, using zeroed record: {raw!r:.80}")
            return ParsedProgress(PARSE_DEFAULT, ZERO_PROGRESS)

    if not isinstance(data, dict):
        logger.warning(f"Progress payload is not an object, using zeroed record: {type(data).__name__}")
        return ParsedProgress(PARSE_DEFAULT, ZERO_PROGRESS)

    try:
        tasks_completed = _number(data.get("tasksCompleted", 0), int)
        percentage = _number(data.get("progressPercentage", 0), float)
        current = data.get("current_task")
        current_task = None if current is None else _number(current, int)
    except (TypeError, ValueError) as exc:
        logger.warning(f"Progress payload has bad field values ({exc}), using zeroed record")
        return ParsedProgress(PARSE_DEFAULT, ZERO_PROGRESS)

    record = ProgressRecord(
        tasks_completed=max(0, tasks_completed),
        progress_percentage=max(0.0, min(100.0, percentage)),
        current_task=current_task,
    )
    return ParsedProgress(PARSE_OK, record)


def compute_percentage(tasks_completed: int, total_tasks: int) -> float:
    if total_tasks <= 0:
        return 0.0
    return min(tasks_completed / total_tasks * 100, 100.0)


def record_task_completion(record: ProgressRecord, total_tasks: int) -> ProgressRecord:
    """Progress after one more approved task."""
    completed = record.tasks_completed + 1
    if total_tasks > 0:
        completed = min(completed, total_tasks)
    next_task = completed if completed < total_tasks else None
    return ProgressRecord(
        tasks_completed=completed,
        progress_percentage=compute_percentage(completed, total_tasks),
        current_task=next_task,
    )


def current_task(tasks: Sequence, record: ProgressRecord):
    """The task the participant is working on, or None once every task is done."""
    index = record.tasks_completed
    if 0 <= index < len(tasks):
        return tasks[index]
    return None


def should_fire_completion(record: ProgressRecord, already_notified: bool) -> bool:
    """The completion event is shown once, the first time progress is seen at 100%."""
    return record.is_complete and not already_notified
