"""会话令牌签发、校验与请求头解析。

会话令牌为无状态的 HS256 签名串（header.payload.signature，均为 URL 安全 base64），
载荷仅包含 login/role/name，不携带任何口令或哈希。服务端不保存会话，也不支持吊销。
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt import InvalidTokenError

from jdoc_api.core.config import get_settings
from jdoc_api.core.errors import TOKEN_PLACEHOLDER_UNAUTHORIZED, UNAUTHORIZED

_PAYLOAD_FIELDS = ("login", "role", "name")


@dataclass(frozen=True)
class SessionPayload:
    """会话令牌载荷。"""

    # 登录名（小写）。
    login: str
    # 角色（doctor/admin）。
    role: str
    # 展示名。
    name: str


def sign_session(payload: SessionPayload) -> str:
    """签发会话令牌。"""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    claims: dict[str, Any] = {**asdict(payload), "iat": int(now.timestamp())}
    if settings.session_ttl_seconds:
        claims["exp"] = int((now + timedelta(seconds=settings.session_ttl_seconds)).timestamp())
    return jwt.encode(claims, settings.session_secret, algorithm=settings.session_algorithm)


def verify_session(token: str | None) -> SessionPayload | None:
    """校验会话令牌，任何失败都返回 None，不向调用方抛异常。"""
    if not isinstance(token, str) or not token:
        return None
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            key=settings.session_secret,
            algorithms=[settings.session_algorithm],
            options={"require": list(_PAYLOAD_FIELDS)},
        )
    except InvalidTokenError:
        return None

    values = [claims.get(field) for field in _PAYLOAD_FIELDS]
    if not all(isinstance(value, str) for value in values):
        return None
    login, role, name = values
    if not login or not role:
        return None
    return SessionPayload(login=login, role=role, name=name)


def _is_placeholder_token(token: str) -> bool:
    return ("{{" in token and "}}" in token) or ("${" in token and "}" in token)


def extract_session_token(headers: Mapping[str, str]) -> str | None:
    """从任意请求头映射中取出会话令牌（不区分大小写）。"""
    header_name = get_settings().session_header.lower()
    value = headers.get(header_name)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == header_name:
                value = candidate
                break
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_session_headers(headers: Mapping[str, str]) -> SessionPayload:
    """解析请求头并返回会话载荷，缺失或无效时抛出 401。"""
    token = extract_session_token(headers)
    if token is None:
        raise UNAUTHORIZED
    if _is_placeholder_token(token):
        raise TOKEN_PLACEHOLDER_UNAUTHORIZED

    payload = verify_session(token)
    if payload is None:
        raise UNAUTHORIZED
    return payload
