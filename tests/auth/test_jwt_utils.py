from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from src.academia_console.academia_console.auth.jwt_utils import (
    NAME_IDENTIFIER_CLAIM,
    decode_claims,
    is_expired,
    person_id_from_claims,
)


def _token(**claims) -> str:
    return jwt.encode(claims, "not-the-backend-secret-but-long-enough", algorithm="HS256")


def test_claims_are_read_without_the_signing_key(fixed_now):
    exp = int((fixed_now + timedelta(hours=1)).timestamp())
    claims = decode_claims(_token(sub="12", exp=exp))

    assert claims["sub"] == "12"
    assert is_expired(claims, now=fixed_now) is False


def test_expired_token_is_detected_even_though_decoding_succeeds(fixed_now):
    exp = int((fixed_now - timedelta(minutes=1)).timestamp())

    assert is_expired(decode_claims(_token(exp=exp)), now=fixed_now) is True


def test_garbage_and_missing_tokens_decode_to_none():
    assert decode_claims("not-a-jwt") is None
    assert decode_claims(None) is None
    assert is_expired(None) is False


def test_person_id_fallback_claims():
    assert person_id_from_claims({NAME_IDENTIFIER_CLAIM: "33"}) == 33
    assert person_id_from_claims({"sub": "correo@x.com", "nameid": "8"}) == 8
    assert person_id_from_claims({}) is None
