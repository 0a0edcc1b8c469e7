"""
Database helpers shared by the challenge routes.
Each helper takes the request's Session and commits its own writes.
"""
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from fitlive.auth.models import User
from fitlive.challenges.models import Challenge, Task, ChallengeParticipant, ChallengeSubmission
from fitlive.challenges.progress import (
    ProgressRecord, ZERO_PROGRESS, parse_progress, record_task_completion,
)
from fitlive.challenges.leaderboard import LeaderboardEntry, rank_participants
from fitlive.challenges.realtime import participant_feed
from fitlive.challenges.status import to_datetime
from fitlive.core.logging import get_logger

logger = get_logger(__name__, "CHALLENGE")

SUBMISSION_PENDING = "pending"
SUBMISSION_APPROVED = "approve"
SUBMISSION_DECLINED = "decline"


class ChallengeFull(Exception):
    pass


class AlreadyJoined(Exception):
    pass


class AlreadyApproved(Exception):
    pass


# ---------------------------------------------------------------------------
# VALIDATION
# ---------------------------------------------------------------------------

def validate_challenge_form(
    title: str,
    description: str,
    content: str,
    start_date: str,
    end_date: str,
    max_participants: Optional[str],
    tasks: List[tuple],
) -> List[str]:
    """Collect every problem with a create/edit form instead of stopping at the first."""
    errors = []
    if not title.strip():
        errors.append("Challenge title is required.")
    if not description.strip():
        errors.append("Challenge description is required.")
    if not content.strip():
        errors.append("Challenge content is required.")

    start = end = None
    if not start_date.strip():
        errors.append("Start date is required.")
    else:
        try:
            start = to_datetime(start_date, "start_date")
        except ValueError:
            errors.append("Start date must be YYYY-MM-DD.")
    if not end_date.strip():
        errors.append("End date is required.")
    else:
        try:
            end = to_datetime(end_date, "end_date")
        except ValueError:
            errors.append("End date must be YYYY-MM-DD.")
    if start and end and end < start:
        errors.append("End date cannot be earlier than the start date.")

    if not tasks:
        errors.append("Please add at least one task with a name and description.")

    if max_participants not in (None, ""):
        try:
            if int(max_participants) <= 0:
                raise ValueError
        except ValueError:
            errors.append("Please enter a valid number for max participants.")

    return errors


def pair_tasks(names: List[str], descriptions: List[str]) -> List[tuple]:
    """Zip task form fields, dropping rows missing a name or a description."""
    pairs = []
    for i, name in enumerate(names):
        desc = descriptions[i] if i < len(descriptions) else ""
        if name.strip() and desc.strip():
            pairs.append((name.strip(), desc.strip()))
    return pairs


def replace_tasks(challenge: Challenge, tasks: List[tuple]) -> None:
    """
    Rewrite a challenge's tasks in order.
    Existing rows are updated in place so ids (and submissions) survive edits;
    surplus rows are deleted, missing ones appended.
    """
    existing = list(challenge.tasks)
    for i, (name, desc) in enumerate(tasks):
        if i < len(existing):
            existing[i].task_name = name
            existing[i].task_description = desc
        else:
            challenge.tasks.append(Task(task_name=name, task_description=desc))
    for task in existing[len(tasks):]:
        # delete-orphan removes the row
        challenge.tasks.remove(task)


# ---------------------------------------------------------------------------
# PARTICIPANTS
# ---------------------------------------------------------------------------

def get_participant(db: Session, challenge_id: int, user_id: int) -> Optional[ChallengeParticipant]:
    return db.query(ChallengeParticipant).filter(
        ChallengeParticipant.challenge_id == challenge_id,
        ChallengeParticipant.user_id == user_id,
    ).first()


def list_participants(db: Session, challenge_id: int) -> List[ChallengeParticipant]:
    return (
        db.query(ChallengeParticipant)
        .options(joinedload(ChallengeParticipant.user))
        .filter(ChallengeParticipant.challenge_id == challenge_id)
        .order_by(ChallengeParticipant.joined_at.asc(), ChallengeParticipant.id.asc())
        .all()
    )


def participant_summary(participant: ChallengeParticipant) -> dict:
    user = participant.user
    return {
        "user_id": participant.user_id,
        "username": user.username if user else "Unknown User",
        "profile_picture": (user.profile_picture if user else None) or "",
    }


def join_challenge(db: Session, challenge: Challenge, user: User) -> ChallengeParticipant:
    if get_participant(db, challenge.id, user.id):
        raise AlreadyJoined()

    if challenge.max_participants is not None:
        count = db.query(ChallengeParticipant).filter(
            ChallengeParticipant.challenge_id == challenge.id
        ).count()
        if count >= challenge.max_participants:
            raise ChallengeFull()

    first_task = 0 if challenge.tasks else None
    participant = ChallengeParticipant(
        challenge_id=challenge.id,
        user_id=user.id,
        progress=ProgressRecord(current_task=first_task).to_json(),
    )
    db.add(participant)
    db.commit()
    db.refresh(participant)

    logger.info(f"user={user.id} joined challenge={challenge.id}")
    participant_feed.notify(challenge.id)
    return participant


def participant_progress(participant: Optional[ChallengeParticipant]) -> ProgressRecord:
    if participant is None:
        return ZERO_PROGRESS
    return parse_progress(participant.progress).record


def build_leaderboard(db: Session, challenge_id: int) -> List[LeaderboardEntry]:
    entries = []
    for p in list_participants(db, challenge_id):
        summary = participant_summary(p)
        entries.append(LeaderboardEntry(
            user_id=p.user_id,
            username=summary["username"],
            profile_picture=summary["profile_picture"],
            progress=participant_progress(p),
            completion_time=p.completion_time,
        ))
    return rank_participants(entries)


def mark_completion_notified(db: Session, participant: ChallengeParticipant) -> None:
    participant.completion_notified_at = datetime.now(timezone.utc)
    db.commit()


# ---------------------------------------------------------------------------
# SUBMISSIONS
# ---------------------------------------------------------------------------

def upsert_submission(db: Session, user: User, task: Task, proof: str, description: str) -> ChallengeSubmission:
    """One submission per (user, task); resubmitting puts it back in the review queue."""
    submission = db.query(ChallengeSubmission).filter(
        ChallengeSubmission.user_id == user.id,
        ChallengeSubmission.task_id == task.id,
    ).first()

    if submission and submission.status == SUBMISSION_APPROVED:
        # Approved work already counted towards progress
        raise AlreadyApproved()

    now = datetime.now(timezone.utc)
    if submission:
        submission.proof = proof
        submission.description = description
        submission.status = SUBMISSION_PENDING
        submission.submission_time = now
    else:
        submission = ChallengeSubmission(
            user_id=user.id,
            task_id=task.id,
            proof=proof,
            description=description,
            status=SUBMISSION_PENDING,
            submission_time=now,
        )
        db.add(submission)

    db.commit()
    db.refresh(submission)
    return submission


def approve_submission(db: Session, submission: ChallengeSubmission) -> ProgressRecord:
    """
    Mark a submission approved and advance the submitter's progress.
    completion_time always takes the submission's time, so the leaderboard
    tie-break rewards whoever got there first.
    """
    task = submission.task
    participant = get_participant(db, task.challenge_id, submission.user_id)
    if participant is None:
        raise LookupError("Submitter is not a participant of this challenge")

    total_tasks = db.query(Task).filter(Task.challenge_id == task.challenge_id).count()
    updated = record_task_completion(participant_progress(participant), total_tasks)

    submission.status = SUBMISSION_APPROVED
    participant.progress = updated.to_json()
    participant.completion_time = submission.submission_time
    db.commit()

    logger.info(
        f"approved submission={submission.id} user={submission.user_id} "
        f"challenge={task.challenge_id} tasks={updated.tasks_completed}/{total_tasks} "
        f"pct={updated.display_percentage}"
    )
    participant_feed.notify(task.challenge_id)
    return updated


def decline_submission(db: Session, submission: ChallengeSubmission) -> None:
    submission.status = SUBMISSION_DECLINED
    db.commit()
    logger.info(f"declined submission={submission.id} user={submission.user_id}")


def is_image_proof(proof: str) -> bool:
    """Base64 JPEG, PNG and GIF headers; anything else is shown as video."""
    return proof.startswith(("/9j/", "iVBOR", "R0lGOD"))
