from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fitlive.db.base import Base


class Article(Base):
    """User-written article; only approved ones are listed publicly."""
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_base64 = Column(Text, nullable=True)

    # pending | approve | decline
    approval_status = Column(String(16), nullable=False, default="pending", index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")


class Moment(Base):
    __tablename__ = "moments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=False, default="")
    image_base64 = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
    likes = relationship("MomentLike", back_populates="moment", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship(
        "MomentComment",
        back_populates="moment",
        order_by="MomentComment.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reports = relationship("MomentReport", back_populates="moment", cascade="all, delete-orphan", passive_deletes=True)


class MomentLike(Base):
    __tablename__ = "moment_likes"

    id = Column(Integer, primary_key=True, index=True)
    moment_id = Column(Integer, ForeignKey("moments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    moment = relationship("Moment", back_populates="likes")

    __table_args__ = (
        UniqueConstraint("moment_id", "user_id", name="uq_moment_like"),
    )


class MomentComment(Base):
    __tablename__ = "moment_comments"

    id = Column(Integer, primary_key=True, index=True)
    moment_id = Column(Integer, ForeignKey("moments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    moment = relationship("Moment", back_populates="comments")
    user = relationship("User")


class MomentReport(Base):
    __tablename__ = "moment_reports"

    id = Column(Integer, primary_key=True, index=True)
    moment_id = Column(Integer, ForeignKey("moments.id", ondelete="CASCADE"), nullable=False, index=True)
    reporter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    moment = relationship("Moment", back_populates="reports")
    reporter = relationship("User")
