from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fitlive.db.base import Base


class Challenge(Base):
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False, default="")

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # NULL means "No Limit"
    max_participants = Column(Integer, nullable=True)

    difficulty = Column(String(32), nullable=False, default="beginner")  # beginner | intermediate | advanced
    target_audience = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Insertion order is the task order
    tasks = relationship(
        "Task",
        back_populates="challenge",
        order_by="Task.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    participants = relationship(
        "ChallengeParticipant",
        back_populates="challenge",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    challenge_id = Column(Integer, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, index=True)

    task_name = Column(String(255), nullable=False)
    task_description = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    challenge = relationship("Challenge", back_populates="tasks")
    submissions = relationship(
        "ChallengeSubmission",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ChallengeParticipant(Base):
    """
    Join record between a user and a challenge.

    progress is stored as JSON text:
        {"tasksCompleted": int, "progressPercentage": number, "current_task": int|null}
    Older rows may hold malformed JSON; readers go through parse_progress().
    """
    __tablename__ = "challenge_participants"

    id = Column(Integer, primary_key=True, index=True)

    challenge_id = Column(Integer, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    progress = Column(Text, nullable=True)
    completion_time = Column(DateTime(timezone=True), nullable=True)

    # Set the first time the user is shown the completion event
    completion_notified_at = Column(DateTime(timezone=True), nullable=True)

    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    challenge = relationship("Challenge", back_populates="participants")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="uq_challenge_participant"),
    )


class ChallengeSubmission(Base):
    __tablename__ = "challenge_submissions"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)

    # Base64 image or video
    proof = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")

    # pending | approve | decline
    status = Column(String(16), nullable=False, default="pending", index=True)

    submission_time = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    task = relationship("Task", back_populates="submissions")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("user_id", "task_id", name="uq_submission_user_task"),
    )
