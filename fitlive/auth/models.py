from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Text
from sqlalchemy.sql import func

from fitlive.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)

    password_hash = Column(String, nullable=False)

    # User role: "user" (default) or "admin"
    role = Column(String, default="user", nullable=False)

    # Set once a subscription payment goes through
    is_premium = Column(Boolean, default=False, nullable=False)

    # Base64 image, same encoding the mobile client uploads
    profile_picture = Column(Text, nullable=True)

    # ===============================
    # FITNESS PREFERENCES (drive recommended intake)
    # ===============================
    age = Column(Integer, nullable=True)
    gender = Column(String(16), nullable=True)  # "male" | "female"
    height = Column(Float, nullable=True)  # cm
    weight = Column(Float, nullable=True)  # kg
    activity_level = Column(String(32), nullable=True)  # sedentary ... super_active
    goal = Column(String(32), nullable=True)  # weight_loss | muscle_gain | ...

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Track when user was last active (updated on every authenticated request)
    last_active = Column(DateTime(timezone=True), nullable=True)
