from fastapi import APIRouter, Depends, HTTPException, Form
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from fitlive.db.session import get_db
from fitlive.auth.models import User
from fitlive.core.security import hash_password, verify_password, create_access_token
from fitlive.core.logging import get_logger

router = APIRouter(prefix="/auth", tags=["auth"])

logger = get_logger(__name__, "AUTH")

MIN_PASSWORD_LENGTH = 6


# =========================
# SIGNUP
# =========================
@router.post("/signup")
def signup(
    email: str = Form(...),
    username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    email = email.strip().lower()
    username = username.strip()

    if not email or not username:
        raise HTTPException(status_code=400, detail="Email and username are required")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    if db.query(User).filter(User.username == username).first():
        raise HTTPException(status_code=400, detail="Username already taken")

    user = User(
        email=email,
        username=username,
        password_hash=hash_password(password),
        role="user",  # All signups are normal users by default
    )

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Signup user={user.id} username={user.username}")
    return {"message": "Signup successful", "user_id": user.id}


# =========================
# LOGIN
# =========================
@router.post("/login")
def login(
    email_or_username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    ident = email_or_username.strip()
    # Try to find user by email first, then by username
    user = db.query(User).filter(User.email == ident.lower()).first()

    if not user:
        user = db.query(User).filter(User.username == ident).first()

    if not user or not verify_password(password, user.password_hash):
        logger.info(f"Invalid credentials for: {ident}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    # Subject is the immutable id; usernames can be changed and reused
    token = create_access_token({"sub": str(user.id)})
    logger.info(f"Login successful for: {user.username}")

    response = JSONResponse({"access_token": token, "user_id": user.id, "role": user.role})
    response.set_cookie("access_token", token, httponly=True, samesite="lax")
    return response
