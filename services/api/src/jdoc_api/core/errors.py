"""业务错误定义。

认证、授权、限流与额度失败统一以 HTTPException 抛出，由异常处理器包装成标准错误结构；
外部依赖（行存储、转写分析服务）不可用时抛出 UpstreamUnavailableError。
"""

import math

from fastapi import HTTPException, status


class UpstreamUnavailableError(Exception):
    """外部依赖不可达或返回错误。"""

    def __init__(self, service: str, detail: str) -> None:
        self.service = service
        self.detail = detail
        super().__init__(f"{service} unavailable: {detail}")


def _error(status_code: int, code: str, message: str, **details: object) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"code": code, "message": message, "details": {"reason": code.lower(), **details}},
    )


UNAUTHORIZED = _error(status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED", "未登录或会话令牌无效。")
TOKEN_PLACEHOLDER_UNAUTHORIZED = _error(
    status.HTTP_401_UNAUTHORIZED,
    "AUTH_TOKEN_PLACEHOLDER_NOT_RESOLVED",
    "认证失败：会话令牌仍为变量占位符，未替换为真实令牌。",
    suggestion="请先调用登录接口获取 token，再在请求头中传入真实令牌。",
)
FORBIDDEN = _error(status.HTTP_403_FORBIDDEN, "FORBIDDEN", "当前账号无权访问该资源。")


def invalid_credentials() -> HTTPException:
    # 不区分账号不存在与密码错误。
    return _error(status.HTTP_401_UNAUTHORIZED, "INVALID_CREDENTIALS", "账号或密码错误。")


def account_disabled() -> HTTPException:
    return _error(
        status.HTTP_403_FORBIDDEN,
        "ACCOUNT_DISABLED",
        "账号已停用。",
        suggestion="请联系管理员恢复账号。",
    )


def rate_limited(retry_after_seconds: int) -> HTTPException:
    """登录尝试过多。"""
    retry_after_seconds = max(1, retry_after_seconds)
    minutes = max(1, math.ceil(retry_after_seconds / 60))
    exc = _error(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "RATE_LIMITED",
        f"尝试次数过多，请在 {minutes} 分钟后重试。",
        retry_after_seconds=retry_after_seconds,
    )
    exc.headers = {"Retry-After": str(retry_after_seconds)}
    return exc


def quota_exhausted(clinic_name: str) -> HTTPException:
    """诊所额度耗尽，拒绝保存。"""
    return _error(
        status.HTTP_403_FORBIDDEN,
        "QUOTA_EXHAUSTED",
        "诊所额度已用完，无法保存病历。",
        clinic_name=clinic_name,
        remaining_credits=0,
        suggestion="请联系管理员充值额度。",
    )


def bad_request(message: str, **details: object) -> HTTPException:
    return _error(status.HTTP_400_BAD_REQUEST, "BAD_REQUEST", message, **details)


def not_found(message: str) -> HTTPException:
    return _error(status.HTTP_404_NOT_FOUND, "NOT_FOUND", message)
