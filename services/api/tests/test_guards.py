import pytest
from fastapi import HTTPException
from starlette.requests import Request

from jdoc_api.core.security import SessionPayload, sign_session
from jdoc_api.dependencies import require_admin, require_auth

DOCTOR = SessionPayload(login="ivanov", role="doctor", name="Ivanov")
ADMIN = SessionPayload(login="admin", role="admin", name="Admin")


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(key.lower().encode("latin-1"), value.encode("latin-1")) for key, value in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def test_require_auth_without_token_is_401():
    with pytest.raises(HTTPException) as exc:
        require_auth(_request())
    assert exc.value.status_code == 401


def test_require_auth_with_tampered_token_is_401():
    token = sign_session(DOCTOR)
    header, payload, signature = token.split(".")
    forged = ".".join([header, payload, signature[:-4] + ("AAAA" if signature[-4:] != "AAAA" else "BBBB")])
    with pytest.raises(HTTPException) as exc:
        require_auth(_request({"x-session-token": forged}))
    assert exc.value.status_code == 401


def test_require_auth_returns_payload():
    assert require_auth(_request({"X-Session-Token": sign_session(DOCTOR)})) == DOCTOR


def test_require_admin_rejects_doctor():
    with pytest.raises(HTTPException) as exc:
        require_admin(DOCTOR)
    assert exc.value.status_code == 403
    assert exc.value.detail["code"] == "FORBIDDEN"


def test_require_admin_returns_admin_payload():
    assert require_admin(ADMIN) == ADMIN
