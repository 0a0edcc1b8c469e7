from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Form, HTTPException
from sqlalchemy.orm import Session

from fitlive.db.session import get_db
from fitlive.auth.models import User
from fitlive.payments.models import PaymentIntent
from fitlive.payments.client import PaymentError, create_payment_intent
from fitlive.core.config import SUBSCRIPTION_PLANS, PAYMENT_CURRENCY, MERCHANT_DISPLAY_NAME
from fitlive.core.deps import get_current_user
from fitlive.core.logging import get_logger

router = APIRouter(prefix="/payments", tags=["payments"])

logger = get_logger(__name__, "PAYMENT")


def _plan_amount(plan: str) -> int:
    if plan not in SUBSCRIPTION_PLANS:
        raise HTTPException(status_code=400, detail=f"plan must be one of {', '.join(SUBSCRIPTION_PLANS)}")
    return SUBSCRIPTION_PLANS[plan]


@router.get("/plans")
def list_plans():
    return {
        "currency": PAYMENT_CURRENCY,
        "plans": [{"plan": name, "amount": amount} for name, amount in SUBSCRIPTION_PLANS.items()],
    }


@router.post("/intent")
def create_intent(
    plan: str = Form(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    amount = _plan_amount(plan)
    try:
        client_secret = create_payment_intent(amount)
    except PaymentError as e:
        raise HTTPException(status_code=502, detail=str(e))

    intent = PaymentIntent(
        user_id=user.id,
        plan=plan,
        amount=amount,
        currency=PAYMENT_CURRENCY,
        client_secret=client_secret,
        status="pending",
    )
    db.add(intent)
    db.commit()

    logger.info(f"user={user.id} created intent={intent.id} plan={plan} amount={amount}")
    return {
        "client_secret": client_secret,
        "merchant_display_name": MERCHANT_DISPLAY_NAME,
        "plan": plan,
        "amount": amount,
        "currency": PAYMENT_CURRENCY,
    }


@router.post("/confirm")
def confirm_payment(
    client_secret: str = Form(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Called after the checkout sheet reports success for an intent from /intent."""
    intent = db.query(PaymentIntent).filter(
        PaymentIntent.client_secret == client_secret.strip(),
        PaymentIntent.user_id == user.id,
    ).first()
    if not intent:
        logger.warning(f"user={user.id} tried to confirm an unknown payment")
        raise HTTPException(status_code=404, detail="Payment not found")

    if intent.status != "confirmed":
        intent.status = "confirmed"
        intent.confirmed_at = datetime.now(timezone.utc)
    user.is_premium = True
    db.commit()

    logger.info(f"user={user.id} is now premium plan={intent.plan} intent={intent.id}")
    return {"message": "Subscription activated", "is_premium": True, "plan": intent.plan}
