"""
Profile and account management, plus the admin user table.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, HTTPException
from sqlalchemy.orm import Session

from fitlive.db.session import get_db
from fitlive.auth.models import User
from fitlive.community.models import Moment
from fitlive.nutrition.aggregation import ACTIVITY_MULTIPLIERS, GOAL_ADJUSTMENTS
from fitlive.core.deps import get_current_user, get_admin, is_admin
from fitlive.core.logging import get_logger

router = APIRouter(tags=["users"])

logger = get_logger(__name__, "USERS")

GENDERS = ("male", "female")
ROLES = ("user", "admin")
CLEARABLE_FIELDS = ("profile_picture", "age", "gender", "height", "weight", "activity_level", "goal")


def _profile_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "role": user.role,
        "is_admin": is_admin(user),
        "is_premium": user.is_premium,
        "profile_picture": user.profile_picture or "",
        "age": user.age,
        "gender": user.gender,
        "height": user.height,
        "weight": user.weight,
        "activity_level": user.activity_level,
        "goal": user.goal,
        "last_active": user.last_active.isoformat() if user.last_active else None,
    }


def _optional_number(value: Optional[str], field: str, cast=float):
    if value in (None, ""):
        return None
    try:
        number = cast(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{field} must be a number")
    if number <= 0:
        raise HTTPException(status_code=400, detail=f"{field} must be positive")
    return number


def _optional_choice(value: Optional[str], field: str, choices) -> Optional[str]:
    if value in (None, ""):
        return None
    value = value.strip().lower()
    if value not in choices:
        raise HTTPException(status_code=400, detail=f"{field} must be one of {', '.join(choices)}")
    return value


def _apply_profile(
    db: Session,
    user: User,
    username: Optional[str],
    profile_picture: Optional[str],
    age: Optional[str],
    gender: Optional[str],
    height: Optional[str],
    weight: Optional[str],
    activity_level: Optional[str],
    goal: Optional[str],
    clear: List[str],
) -> None:
    """Only fields that were sent are changed; fields named in *clear* are reset to empty."""
    unknown = [name for name in clear if name not in CLEARABLE_FIELDS]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Cannot clear: {', '.join(unknown)}")

    if username is not None:
        username = username.strip()
        if not username:
            raise HTTPException(status_code=400, detail="Username cannot be empty")
        taken = db.query(User).filter(User.username == username, User.id != user.id).first()
        if taken:
            raise HTTPException(status_code=400, detail="Username already taken")
        user.username = username

    if profile_picture is not None:
        user.profile_picture = profile_picture or None
    if age is not None:
        user.age = _optional_number(age, "age", int)
    if gender is not None:
        user.gender = _optional_choice(gender, "gender", GENDERS)
    if height is not None:
        user.height = _optional_number(height, "height")
    if weight is not None:
        user.weight = _optional_number(weight, "weight")
    if activity_level is not None:
        user.activity_level = _optional_choice(activity_level, "activity_level", tuple(ACTIVITY_MULTIPLIERS))
    if goal is not None:
        user.goal = _optional_choice(goal, "goal", tuple(GOAL_ADJUSTMENTS))

    for name in clear:
        setattr(user, name, None)


# ======================================================
# OWN ACCOUNT
# ======================================================
@router.get("/users/me")
def get_me(user: User = Depends(get_current_user)):
    return _profile_dict(user)


@router.post("/users/me")
def update_me(
    username: Optional[str] = Form(None),
    profile_picture: Optional[str] = Form(None),
    age: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    height: Optional[str] = Form(None),
    weight: Optional[str] = Form(None),
    activity_level: Optional[str] = Form(None),
    goal: Optional[str] = Form(None),
    clear: List[str] = Form([]),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _apply_profile(db, user, username, profile_picture, age, gender, height, weight, activity_level, goal, clear)
    db.commit()
    db.refresh(user)
    logger.info(f"user={user.id} updated profile")
    return _profile_dict(user)


@router.delete("/users/me")
def delete_me(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    user_id = user.id
    # Participations, submissions, nutrition logs and posts cascade in the database
    db.delete(user)
    db.commit()
    logger.info(f"user={user_id} deleted their account")
    return {"message": "Account deleted"}


@router.get("/users/{user_id}")
def get_public_profile(
    user_id: int,
    db: Session = Depends(get_db),
    viewer: User = Depends(get_current_user),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    moments_count = db.query(Moment).filter(Moment.user_id == user.id).count()
    return {
        "id": user.id,
        "username": user.username,
        "profile_picture": user.profile_picture or "",
        "moments_count": moments_count,
    }


# ======================================================
# ADMIN
# ======================================================
@router.get("/admin/users")
def list_users(
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    users = db.query(User).order_by(User.id.asc()).all()
    return {"users": [_profile_dict(u) for u in users]}


@router.post("/admin/users/{user_id}")
def admin_update_user(
    user_id: int,
    role: Optional[str] = Form(None),
    is_premium: Optional[bool] = Form(None),
    username: Optional[str] = Form(None),
    profile_picture: Optional[str] = Form(None),
    age: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    height: Optional[str] = Form(None),
    weight: Optional[str] = Form(None),
    activity_level: Optional[str] = Form(None),
    goal: Optional[str] = Form(None),
    clear: List[str] = Form([]),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if role is not None:
        if role not in ROLES:
            raise HTTPException(status_code=400, detail="role must be 'user' or 'admin'")
        user.role = role
    if is_premium is not None:
        user.is_premium = is_premium

    _apply_profile(db, user, username, profile_picture, age, gender, height, weight, activity_level, goal, clear)
    db.commit()
    db.refresh(user)

    logger.info(f"admin={admin.id} updated user={user.id} role={user.role} premium={user.is_premium}")
    return _profile_dict(user)
