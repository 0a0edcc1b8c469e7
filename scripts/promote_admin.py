"""
Give a user the admin role.

    python scripts/promote_admin.py              # user with MAIN_ADMIN_USER_ID
    python scripts/promote_admin.py alice        # by username or email

The main admin id already has admin authority at runtime; this also writes
role="admin" so the account keeps it if MAIN_ADMIN_USER_ID changes.
"""
import sys
import os

# Add the parent directory to the path so we can import fitlive modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fitlive.db.session import SessionLocal
from fitlive.auth.models import User
from fitlive.core.config import MAIN_ADMIN_USER_ID


def find_user(db, ident=None):
    if not ident:
        return db.query(User).filter(User.id == MAIN_ADMIN_USER_ID).first()
    user = db.query(User).filter(User.email == ident.strip().lower()).first()
    if not user:
        user = db.query(User).filter(User.username == ident.strip()).first()
    return user


def promote_admin(db, ident=None) -> bool:
    user = find_user(db, ident)
    if not user:
        print(f"ERROR: User {ident or f'with ID {MAIN_ADMIN_USER_ID}'} not found!")
        return False

    user.role = "admin"
    db.commit()
    print(f"SUCCESS: User '{user.username}' (ID: {user.id}) is now an admin.")
    return True


if __name__ == "__main__":
    db = SessionLocal()
    try:
        ok = promote_admin(db, sys.argv[1] if len(sys.argv) > 1 else None)
    except Exception as e:
        db.rollback()
        print(f"ERROR: Failed to promote admin: {str(e)}")
        ok = False
    finally:
        db.close()

    if not ok:
        sys.exit(1)
