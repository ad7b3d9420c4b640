import base64
import time

import jwt
import pytest
from fastapi import HTTPException

from jdoc_api.core.config import get_settings
from jdoc_api.core.security import (
    SessionPayload,
    extract_session_token,
    parse_session_headers,
    sign_session,
    verify_session,
)

DOCTOR = SessionPayload(login="ivanov", role="doctor", name="Иванов И. И.")


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _flip_bit(token: str, segment_index: int, bit: int) -> str:
    segments = token.split(".")
    raw = bytearray(_b64decode(segments[segment_index]))
    raw[bit // 8] ^= 1 << (bit % 8)
    segments[segment_index] = _b64encode(bytes(raw))
    return ".".join(segments)


def test_sign_then_verify_round_trip():
    token = sign_session(DOCTOR)
    assert verify_session(token) == DOCTOR


def test_token_carries_no_credential_material():
    claims = jwt.decode(sign_session(DOCTOR), options={"verify_signature": False})
    assert set(claims) == {"login", "role", "name", "iat"}


@pytest.mark.parametrize("segment_index", [1, 2])
def test_every_single_bit_flip_is_rejected(segment_index):
    token = sign_session(DOCTOR)
    bit_count = len(_b64decode(token.split(".")[segment_index])) * 8
    for bit in range(bit_count):
        assert verify_session(_flip_bit(token, segment_index, bit)) is None, bit


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c", "..."])
def test_malformed_tokens_are_invalid(token):
    assert verify_session(token) is None


def test_token_signed_with_other_secret_is_invalid():
    forged = jwt.encode({"login": "admin", "role": "admin", "name": "x"}, "other-secret", algorithm="HS256")
    assert verify_session(forged) is None


def test_token_missing_claims_is_invalid():
    token = jwt.encode({"login": "ivanov", "role": "doctor"}, "unit-test-secret", algorithm="HS256")
    assert verify_session(token) is None


def test_token_with_non_string_claim_is_invalid():
    token = jwt.encode({"login": "ivanov", "role": 1, "name": "x"}, "unit-test-secret", algorithm="HS256")
    assert verify_session(token) is None


def test_expiry_is_enforced_when_ttl_configured(monkeypatch):
    monkeypatch.setenv("JD_SESSION_TTL_SECONDS", "60")
    get_settings.cache_clear()

    token = sign_session(DOCTOR)
    assert "exp" in jwt.decode(token, options={"verify_signature": False})
    assert verify_session(token) == DOCTOR

    expired = jwt.encode(
        {"login": "ivanov", "role": "doctor", "name": "x", "exp": int(time.time()) - 10},
        "unit-test-secret",
        algorithm="HS256",
    )
    assert verify_session(expired) is None


def test_non_positive_ttl_means_no_expiry(monkeypatch):
    monkeypatch.setenv("JD_SESSION_TTL_SECONDS", "0")
    get_settings.cache_clear()

    assert get_settings().session_ttl_seconds is None
    assert "exp" not in jwt.decode(sign_session(DOCTOR), options={"verify_signature": False})


def test_extract_session_token_is_case_insensitive_and_trims():
    assert extract_session_token({"X-Session-Token": "  abc  "}) == "abc"
    assert extract_session_token({"x-session-token": "abc"}) == "abc"
    assert extract_session_token({"x-session-token": "   "}) is None
    assert extract_session_token({"authorization": "Bearer abc"}) is None
    assert extract_session_token({}) is None


def test_parse_session_headers_accepts_valid_token():
    assert parse_session_headers({"x-session-token": sign_session(DOCTOR)}) == DOCTOR


def test_parse_session_headers_rejects_missing_and_tampered():
    with pytest.raises(HTTPException) as missing:
        parse_session_headers({})
    assert missing.value.status_code == 401
    assert missing.value.detail["code"] == "UNAUTHORIZED"

    with pytest.raises(HTTPException) as tampered:
        parse_session_headers({"x-session-token": _flip_bit(sign_session(DOCTOR), 2, 0)})
    assert tampered.value.status_code == 401


def test_parse_session_headers_rejects_placeholder():
    with pytest.raises(HTTPException) as exc:
        parse_session_headers({"x-session-token": "{{sessionToken}}"})
    assert exc.value.status_code == 401
    assert exc.value.detail["code"] == "AUTH_TOKEN_PLACEHOLDER_NOT_RESOLVED"
