import uuid

import pytest
import requests

from fitlive.payments import client as payment_client
from fitlive.payments.client import PaymentError, create_payment_intent


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def backend(monkeypatch):
    calls = []
    # None means a fresh secret per call, like the real backend
    state = {"response": None}

    def fake_post(url, json=None, timeout=None):
        calls.append({"url": url, "json": json, "timeout": timeout})
        if isinstance(state["response"], Exception):
            raise state["response"]
        if state["response"] is None:
            return FakeResponse(payload={"clientSecret": f"pi_{uuid.uuid4().hex}_secret"})
        return state["response"]

    monkeypatch.setattr(payment_client.requests, "post", fake_post)
    return calls, state


def test_create_payment_intent_posts_amount_and_currency(backend):
    calls, state = backend
    state["response"] = FakeResponse(payload={"clientSecret": "pi_123_secret_456"})
    assert create_payment_intent(4990) == "pi_123_secret_456"
    assert calls[0]["url"].endswith("/create-payment-intent")
    assert calls[0]["json"] == {"amount": 4990, "currency": "myr"}
    assert calls[0]["timeout"]


@pytest.mark.parametrize("response", [
    FakeResponse(status_code=500, text="boom"),
    FakeResponse(payload={"error": "nope"}),
    FakeResponse(text="<html>"),
    requests.ConnectionError("refused"),
])
def test_create_payment_intent_failures(backend, response):
    _, state = backend
    state["response"] = response
    with pytest.raises(PaymentError):
        create_payment_intent(4990)


def test_intent_route(client, make_user, backend):
    calls, state = backend
    user = make_user()

    r = client.post("/payments/intent", data={"plan": "yearly"}, headers=user.headers)
    assert r.status_code == 200
    body = r.json()
    assert body["client_secret"].startswith("pi_")
    assert body["merchant_display_name"] == "Fitlive"
    assert calls[-1]["json"]["amount"] == 47990

    assert client.post("/payments/intent", data={"plan": "weekly"}, headers=user.headers).status_code == 400

    state["response"] = FakeResponse(status_code=503, text="down")
    assert client.post("/payments/intent", data={"plan": "monthly"}, headers=user.headers).status_code == 502


def test_confirm_marks_user_premium(client, make_user, backend):
    user = make_user()
    assert client.get("/users/me", headers=user.headers).json()["is_premium"] is False

    secret = client.post("/payments/intent", data={"plan": "monthly"}, headers=user.headers).json()["client_secret"]
    r = client.post("/payments/confirm", data={"client_secret": secret}, headers=user.headers)
    assert r.status_code == 200
    assert r.json()["plan"] == "monthly"
    assert client.get("/users/me", headers=user.headers).json()["is_premium"] is True

    # confirming twice is harmless
    assert client.post("/payments/confirm", data={"client_secret": secret}, headers=user.headers).status_code == 200


def test_confirm_needs_an_intent_issued_to_the_caller(client, make_user, backend):
    owner, other = make_user(), make_user()
    secret = client.post("/payments/intent", data={"plan": "yearly"}, headers=owner.headers).json()["client_secret"]

    assert client.post("/payments/confirm", data={"client_secret": "made-up"}, headers=other.headers).status_code == 404
    assert client.post("/payments/confirm", data={"client_secret": secret}, headers=other.headers).status_code == 404
    assert client.post("/payments/confirm", data={"plan": "monthly"}, headers=other.headers).status_code == 422
    assert client.get("/users/me", headers=other.headers).json()["is_premium"] is False


def test_plans_listing(client):
    plans = client.get("/payments/plans").json()
    assert plans["currency"] == "myr"
    assert {p["plan"]: p["amount"] for p in plans["plans"]} == {"monthly": 4990, "yearly": 47990}
