"""
API routes for the home screen summary.
"""
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fitlive.auth.models import User
from fitlive.challenges.models import ChallengeParticipant
from fitlive.challenges.service import participant_progress
from fitlive.challenges.status import derive_challenge_status
from fitlive.nutrition.service import get_day
from fitlive.core.deps import get_current_user
from fitlive.db.session import get_db

router = APIRouter(prefix="/api", tags=["api"])


@router.get("/me/summary")
def get_me_summary(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Return the user's joined challenges (with status and own progress) and
    today's nutrition totals for the home screen.
    """
    participations = (
        db.query(ChallengeParticipant)
        .filter(ChallengeParticipant.user_id == user.id)
        .order_by(ChallengeParticipant.joined_at.asc(), ChallengeParticipant.id.asc())
        .all()
    )

    challenges = []
    for p in participations:
        challenge = p.challenge
        status = derive_challenge_status(challenge.start_date, challenge.end_date)
        challenges.append({
            "challenge_id": challenge.id,
            "title": challenge.title,
            "status": status.status,
            "progress_percentage": participant_progress(p).display_percentage,
        })

    today = get_day(db, user.id, date.today())
    return {
        "username": user.username,
        "is_premium": user.is_premium,
        "challenges": challenges,
        "today": {
            "total_calories": today.total_calories if today else 0,
            "water_intake": today.water_intake if today else 0,
        },
    }
