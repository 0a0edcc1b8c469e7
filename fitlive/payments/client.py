"""
Thin client for the payment backend.

The backend owns the processor's secret key; this app only asks it for a
payment intent and hands the client secret to the mobile checkout sheet.
"""
import requests

from fitlive.core.config import PAYMENT_BACKEND_URL, PAYMENT_CURRENCY, PAYMENT_TIMEOUT_SECONDS
from fitlive.core.logging import get_logger

logger = get_logger(__name__, "PAYMENT")


class PaymentError(Exception):
    pass


def create_payment_intent(amount: int, currency: str = PAYMENT_CURRENCY) -> str:
    """
    POST {amount, currency} to /create-payment-intent and return its clientSecret.
    Raises PaymentError on network failure, a non-2xx answer or a body without a secret.
    """
    url = f"{PAYMENT_BACKEND_URL}/create-payment-intent"
    try:
        r = requests.post(
            url,
            json={"amount": amount, "currency": currency},
            timeout=PAYMENT_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.error(f"payment backend unreachable url={url} error={exc!r}")
        raise PaymentError("Payment service unavailable") from exc

    if not (200 <= r.status_code < 300):
        logger.error(f"payment backend FAILED status={r.status_code} body={r.text[:200]}")
        raise PaymentError(f"Payment service returned {r.status_code}")

    try:
        data = r.json()
    except ValueError as exc:
        logger.error(f"payment backend sent non-JSON body={r.text[:200]}")
        raise PaymentError("Invalid response from payment service") from exc

    client_secret = data.get("clientSecret") if isinstance(data, dict) else None
    if not client_secret:
        raise PaymentError("Payment service did not return a client secret")
    return client_secret
