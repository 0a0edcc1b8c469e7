import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from fitlive.db.session import get_db
from fitlive.db.base import SessionLocal
from fitlive.auth.models import User
from fitlive.challenges.models import Challenge, Task, ChallengeSubmission
from fitlive.challenges import service
from fitlive.challenges.leaderboard import top_n
from fitlive.challenges.progress import current_task, should_fire_completion
from fitlive.challenges.realtime import participant_feed
from fitlive.challenges.status import STATUSES, derive_challenge_status, filter_by_status, to_datetime
from fitlive.core.config import MAX_DISPLAY_PARTICIPANTS, LEADERBOARD_PREVIEW_SIZE
from fitlive.core.deps import get_current_user, get_admin
from fitlive.core.logging import get_logger

router = APIRouter(tags=["challenge"])

logger = get_logger(__name__, "CHALLENGE")


def _get_challenge(db: Session, challenge_id: int) -> Challenge:
    challenge = db.query(Challenge).filter(Challenge.id == challenge_id).first()
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return challenge


def _challenge_dict(challenge: Challenge) -> dict:
    status = derive_challenge_status(challenge.start_date, challenge.end_date)
    return {
        "id": challenge.id,
        "title": challenge.title,
        "description": challenge.description,
        "content": challenge.content,
        "start_date": challenge.start_date.isoformat(),
        "end_date": challenge.end_date.isoformat(),
        "difficulty": challenge.difficulty,
        "target_audience": challenge.target_audience,
        "max_participants": challenge.max_participants,
        "status": status.status,
        "progress_percentage": status.progress_percentage,
    }


def _task_dict(task: Task) -> dict:
    return {
        "id": task.id,
        "challenge_id": task.challenge_id,
        "task_name": task.task_name,
        "task_description": task.task_description,
    }


# ======================================================
# LIST / DETAIL
# ======================================================
@router.get("/challenges")
def list_challenges(
    status: Optional[str] = Query(None, description="Ongoing, Upcoming or Completed"),
    db: Session = Depends(get_db),
):
    challenges = db.query(Challenge).order_by(Challenge.start_date.asc(), Challenge.id.asc()).all()
    if status:
        if status not in STATUSES:
            raise HTTPException(status_code=400, detail=f"status must be one of {', '.join(STATUSES)}")
        challenges = filter_by_status(challenges, status)
    return {"challenges": [_challenge_dict(c) for c in challenges]}


@router.get("/challenges/{challenge_id}")
def get_challenge(
    challenge_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    challenge = _get_challenge(db, challenge_id)
    participants = service.list_participants(db, challenge_id)
    preview = [service.participant_summary(p) for p in participants[:MAX_DISPLAY_PARTICIPANTS]]

    return {
        **_challenge_dict(challenge),
        "tasks": [_task_dict(t) for t in challenge.tasks],
        "participant_count": len(participants),
        "participants": preview,
        "more_participants": max(0, len(participants) - MAX_DISPLAY_PARTICIPANTS),
        "is_joined": any(p.user_id == user.id for p in participants),
    }


# ======================================================
# ADMIN: CREATE / EDIT / DELETE
# ======================================================
def _parse_max_participants(value: Optional[str]) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


@router.post("/challenges")
def create_challenge(
    title: str = Form(...),
    description: str = Form(...),
    content: str = Form(...),
    start_date: str = Form(...),
    end_date: str = Form(...),
    difficulty: str = Form("beginner"),
    target_audience: str = Form(""),
    max_participants: Optional[str] = Form(None),
    task_names: List[str] = Form([]),
    task_descriptions: List[str] = Form([]),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    tasks = service.pair_tasks(task_names, task_descriptions)
    errors = service.validate_challenge_form(
        title, description, content, start_date, end_date, max_participants, tasks,
    )
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    challenge = Challenge(
        title=title.strip(),
        description=description.strip(),
        content=content.strip(),
        start_date=to_datetime(start_date).date(),
        end_date=to_datetime(end_date).date(),
        difficulty=difficulty.strip() or "beginner",
        target_audience=target_audience.strip(),
        max_participants=_parse_max_participants(max_participants),
    )
    challenge.tasks = [Task(task_name=n, task_description=d) for n, d in tasks]
    db.add(challenge)
    db.commit()
    db.refresh(challenge)

    logger.info(f"admin={admin.id} created challenge={challenge.id} tasks={len(tasks)}")
    return {**_challenge_dict(challenge), "tasks": [_task_dict(t) for t in challenge.tasks]}


@router.post("/challenges/{challenge_id}")
def update_challenge(
    challenge_id: int,
    title: str = Form(...),
    description: str = Form(...),
    content: str = Form(...),
    start_date: str = Form(...),
    end_date: str = Form(...),
    difficulty: str = Form("beginner"),
    target_audience: str = Form(""),
    max_participants: Optional[str] = Form(None),
    task_names: List[str] = Form([]),
    task_descriptions: List[str] = Form([]),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    challenge = _get_challenge(db, challenge_id)

    tasks = service.pair_tasks(task_names, task_descriptions)
    errors = service.validate_challenge_form(
        title, description, content, start_date, end_date, max_participants, tasks,
    )
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    challenge.title = title.strip()
    challenge.description = description.strip()
    challenge.content = content.strip()
    challenge.start_date = to_datetime(start_date).date()
    challenge.end_date = to_datetime(end_date).date()
    challenge.difficulty = difficulty.strip() or "beginner"
    challenge.target_audience = target_audience.strip()
    challenge.max_participants = _parse_max_participants(max_participants)
    service.replace_tasks(challenge, tasks)
    db.commit()
    db.refresh(challenge)

    logger.info(f"admin={admin.id} updated challenge={challenge.id}")
    return {**_challenge_dict(challenge), "tasks": [_task_dict(t) for t in challenge.tasks]}


@router.delete("/challenges/{challenge_id}")
def delete_challenge(
    challenge_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    challenge = _get_challenge(db, challenge_id)
    db.delete(challenge)
    db.commit()
    logger.info(f"admin={admin.id} deleted challenge={challenge_id}")
    participant_feed.notify(challenge_id)
    return {"message": "Challenge deleted"}


# ======================================================
# JOIN / PROGRESS / LEADERBOARD
# ======================================================
@router.post("/challenges/{challenge_id}/join")
def join_challenge(
    challenge_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    challenge = _get_challenge(db, challenge_id)
    try:
        service.join_challenge(db, challenge, user)
    except service.AlreadyJoined:
        raise HTTPException(status_code=409, detail="Already joined this challenge")
    except service.ChallengeFull:
        raise HTTPException(status_code=409, detail="Challenge is full")
    return {"message": "You have joined the challenge!", "challenge_id": challenge_id}


@router.get("/challenges/{challenge_id}/progress")
def get_challenge_progress(
    challenge_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    challenge = _get_challenge(db, challenge_id)
    participant = service.get_participant(db, challenge_id, user.id)
    if participant is None:
        raise HTTPException(status_code=404, detail="You have not joined this challenge")

    record = service.participant_progress(participant)
    task = current_task(challenge.tasks, record)

    show_completion = should_fire_completion(record, participant.completion_notified_at is not None)
    if show_completion:
        service.mark_completion_notified(db, participant)

    leaderboard = top_n(service.build_leaderboard(db, challenge_id), LEADERBOARD_PREVIEW_SIZE)

    return {
        "challenge": _challenge_dict(challenge),
        "progress_percentage": record.display_percentage,
        "tasks_completed": record.tasks_completed,
        "total_tasks": len(challenge.tasks),
        "current_task_index": record.tasks_completed,
        "current_task": _task_dict(task) if task else None,
        "show_completion": show_completion,
        "leaderboard": [e.to_dict() for e in leaderboard],
    }


@router.get("/challenges/{challenge_id}/leaderboard")
def get_leaderboard(
    challenge_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    challenge = _get_challenge(db, challenge_id)
    ranked = service.build_leaderboard(db, challenge_id)
    return {
        "challenge_id": challenge.id,
        "title": challenge.title,
        "participants": [e.to_dict() for e in ranked],
    }


@router.websocket("/challenges/{challenge_id}/participants/ws")
async def participants_socket(websocket: WebSocket, challenge_id: int):
    """
    Push the participant list on connect and again after every change.
    Notifications arrive from worker threads, so they are handed to this
    loop through call_soon_threadsafe.
    """
    await websocket.accept()
    loop = asyncio.get_running_loop()
    changes: asyncio.Queue = asyncio.Queue()

    def on_change(_challenge_id: int):
        loop.call_soon_threadsafe(changes.put_nowait, _challenge_id)

    def snapshot() -> dict:
        db = SessionLocal()
        try:
            participants = service.list_participants(db, challenge_id)
            return {
                "challenge_id": challenge_id,
                "participants": [service.participant_summary(p) for p in participants],
            }
        finally:
            db.close()

    async def until_disconnect():
        # Clients never send anything; reading only surfaces the close frame
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    unsubscribe = participant_feed.subscribe(challenge_id, on_change)
    disconnected = asyncio.ensure_future(until_disconnect())
    try:
        await websocket.send_json(await run_in_threadpool(snapshot))
        while True:
            changed = asyncio.ensure_future(changes.get())
            await asyncio.wait({changed, disconnected}, return_when=asyncio.FIRST_COMPLETED)
            if disconnected.done():
                changed.cancel()
                break
            await websocket.send_json(await run_in_threadpool(snapshot))
    except WebSocketDisconnect:
        pass
    finally:
        disconnected.cancel()
        unsubscribe()
        logger.debug(f"participant socket closed challenge={challenge_id}")


# ======================================================
# TASK SUBMISSIONS
# ======================================================
def _get_task(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _submission_dict(submission: ChallengeSubmission) -> dict:
    return {
        "id": submission.id,
        "user_id": submission.user_id,
        "task_id": submission.task_id,
        "proof": submission.proof,
        "proof_type": "image" if service.is_image_proof(submission.proof) else "video",
        "description": submission.description,
        "status": submission.status,
        "submission_time": submission.submission_time.isoformat() if submission.submission_time else None,
    }


@router.get("/tasks/{task_id}/submission")
def get_task_submission(
    task_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    task = _get_task(db, task_id)
    submission = db.query(ChallengeSubmission).filter(
        ChallengeSubmission.user_id == user.id,
        ChallengeSubmission.task_id == task.id,
    ).first()
    return {
        "task": _task_dict(task),
        "submission": _submission_dict(submission) if submission else None,
    }


@router.post("/tasks/{task_id}/submission")
def submit_task_proof(
    task_id: int,
    proof: str = Form(""),
    description: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    task = _get_task(db, task_id)
    if not proof or not description.strip():
        raise HTTPException(status_code=400, detail="Please fill in all fields and upload proof.")

    if service.get_participant(db, task.challenge_id, user.id) is None:
        raise HTTPException(status_code=403, detail="Join the challenge before submitting progress")

    try:
        submission = service.upsert_submission(db, user, task, proof, description.strip())
    except service.AlreadyApproved:
        raise HTTPException(status_code=409, detail="This task has already been approved")
    return {"message": "Proof submitted", "submission": _submission_dict(submission)}


# ======================================================
# ADMIN: REVIEW QUEUE
# ======================================================
@router.get("/admin/submissions")
def list_pending_submissions(
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    submissions = (
        db.query(ChallengeSubmission)
        .filter(ChallengeSubmission.status == service.SUBMISSION_PENDING)
        .order_by(ChallengeSubmission.submission_time.asc(), ChallengeSubmission.id.asc())
        .all()
    )
    result = []
    for sub in submissions:
        task = sub.task
        challenge = task.challenge if task else None
        result.append({
            **_submission_dict(sub),
            "task": _task_dict(task) if task else None,
            "challenge_title": challenge.title if challenge else "N/A",
        })
    return {"submissions": result}


@router.get("/admin/submissions/pending-count")
def pending_submission_count(
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    count = db.query(ChallengeSubmission).filter(
        ChallengeSubmission.status == service.SUBMISSION_PENDING
    ).count()
    return {"pending": count}


@router.post("/admin/submissions/{submission_id}")
def review_submission(
    submission_id: int,
    decision: str = Form(...),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    if decision not in (service.SUBMISSION_APPROVED, service.SUBMISSION_DECLINED):
        raise HTTPException(status_code=400, detail="decision must be 'approve' or 'decline'")

    submission = db.query(ChallengeSubmission).filter(ChallengeSubmission.id == submission_id).first()
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    if submission.status != service.SUBMISSION_PENDING:
        raise HTTPException(status_code=409, detail="Submission has already been reviewed")

    if decision == service.SUBMISSION_DECLINED:
        service.decline_submission(db, submission)
        return {"message": "The submission has been declined.", "status": submission.status}

    try:
        progress = service.approve_submission(db, submission)
    except LookupError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {
        "message": "Task approved and progress updated successfully!",
        "status": submission.status,
        "progress": progress.to_dict(),
    }
