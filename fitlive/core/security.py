from datetime import datetime, timedelta, timezone
from typing import Optional
import hashlib
import hmac
import os

from jose import jwt, JWTError

from fitlive.core.logging import get_logger

logger = get_logger(__name__, "AUTH")

# ======================
# PASSWORD HASHING (PBKDF2)
# ======================
# Stored as "pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>" so the work
# factor can be raised without invalidating existing hashes.

HASH_SCHEME = "pbkdf2_sha256"
HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS", "200000"))


def _pbkdf2(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)


def hash_password(password: str) -> str:
    salt = os.urandom(16)
    digest = _pbkdf2(password, salt, HASH_ITERATIONS)
    return f"{HASH_SCHEME}${HASH_ITERATIONS}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        scheme, iterations, salt_hex, hash_hex = stored.split("$")
        if scheme != HASH_SCHEME:
            raise ValueError(scheme)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
        rounds = int(iterations)
    except (AttributeError, ValueError):
        # Corrupt hash column: treat as a failed login, not a server error
        logger.warning("Stored password hash has an unexpected format")
        return False

    return hmac.compare_digest(_pbkdf2(password, salt, rounds), expected)


# ======================
# JWT
# ======================

SECRET_KEY = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET_KEY", ""))
if not SECRET_KEY:
    # Production must configure a secret; local runs fall back to a fixed dev key
    if os.getenv("ENVIRONMENT", "").lower() == "production":
        raise RuntimeError("SECRET_KEY or JWT_SECRET_KEY env var is required in production")
    SECRET_KEY = "fitlive-dev-secret-CHANGE-ME-0123456789abcdef"
    logger.warning("Using default SECRET_KEY for development. DO NOT USE IN PRODUCTION!")

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign *data* (must carry "sub" = the user id as a string) with an exp claim."""
    claims = dict(data)
    now = datetime.now(timezone.utc)
    claims["iat"] = now
    claims["exp"] = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Claims of a valid token, or None when it is expired, tampered with or garbage."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Token expired")
        return None
    except JWTError as e:
        logger.info(f"JWT decode error: {type(e).__name__}")
        return None
