from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from fitlive.db.base import Base


class PaymentIntent(Base):
    """
    An intent this server asked the payment backend for.
    Premium is only granted against a pending row owned by the caller.
    """
    __tablename__ = "payment_intents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    plan = Column(String(16), nullable=False)
    amount = Column(Integer, nullable=False)  # smallest currency unit
    currency = Column(String(8), nullable=False)
    client_secret = Column(String(255), unique=True, nullable=False)

    status = Column(String(16), nullable=False, default="pending")  # pending | confirmed

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
