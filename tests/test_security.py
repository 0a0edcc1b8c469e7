from datetime import timedelta

from fitlive.core.security import (
    create_access_token, decode_access_token, hash_password, verify_password,
)


def test_password_hash_round_trip():
    stored = hash_password("s3cret-pass")
    assert stored.startswith("pbkdf2_sha256$")
    assert verify_password("s3cret-pass", stored)
    assert not verify_password("wrong", stored)
    # salted: same password, different hash
    assert hash_password("s3cret-pass") != stored


def test_malformed_hash_is_a_failed_login():
    assert not verify_password("anything", "")
    assert not verify_password("anything", "not-a-hash")
    assert not verify_password("anything", "md5$1$00$zz")


def test_token_round_trip():
    token = create_access_token({"sub": "alice"})
    assert decode_access_token(token)["sub"] == "alice"


def test_expired_or_tampered_token():
    expired = create_access_token({"sub": "alice"}, expires_delta=timedelta(seconds=-5))
    assert decode_access_token(expired) is None
    assert decode_access_token(create_access_token({"sub": "bob"}) + "x") is None
    assert decode_access_token("garbage") is None
