"""应用异常处理注册。"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from jdoc_api.core.errors import UpstreamUnavailableError
from jdoc_api.services.accounts import AccountExistsError, AccountNotFoundError
from jdoc_api.services.credits import CreditLedgerError
from jdoc_api.utils.response import DEFAULT_ERROR_MESSAGE, error_payload

logger = logging.getLogger(__name__)


def _default_http_error_code(status_code: int) -> str:
    if status_code == status.HTTP_400_BAD_REQUEST:
        return "BAD_REQUEST"
    if status_code == status.HTTP_401_UNAUTHORIZED:
        return "UNAUTHORIZED"
    if status_code == status.HTTP_403_FORBIDDEN:
        return "FORBIDDEN"
    if status_code == status.HTTP_404_NOT_FOUND:
        return "NOT_FOUND"
    if status_code == status.HTTP_409_CONFLICT:
        return "CONFLICT"
    if status_code == status.HTTP_429_TOO_MANY_REQUESTS:
        return "RATE_LIMITED"
    return "HTTP_ERROR"


def _default_http_message(status_code: int) -> str:
    if status_code == status.HTTP_400_BAD_REQUEST:
        return "请求参数不合法。"
    if status_code == status.HTTP_401_UNAUTHORIZED:
        return "未登录或会话令牌无效。"
    if status_code == status.HTTP_403_FORBIDDEN:
        return "无权限访问该资源。"
    if status_code == status.HTTP_404_NOT_FOUND:
        return "请求资源不存在。"
    if status_code == status.HTTP_409_CONFLICT:
        return "请求与当前数据状态冲突。"
    if status_code == status.HTTP_429_TOO_MANY_REQUESTS:
        return "请求过于频繁。"
    return "请求处理失败。"


def _default_http_suggestion(status_code: int) -> str:
    if status_code == status.HTTP_400_BAD_REQUEST:
        return "请根据错误字段提示修正请求参数后重试。"
    if status_code == status.HTTP_401_UNAUTHORIZED:
        return "请重新登录并在请求头中携带会话令牌。"
    if status_code == status.HTTP_403_FORBIDDEN:
        return "请确认当前账号角色与状态。"
    if status_code == status.HTTP_404_NOT_FOUND:
        return "请确认资源标识是否正确，或资源是否已被删除。"
    if status_code == status.HTTP_429_TOO_MANY_REQUESTS:
        return "请稍后再试。"
    return "请稍后重试，若持续失败请联系管理员。"


def _parse_http_detail(detail: object, status_code: int) -> tuple[str, str, dict[str, object]]:
    code = _default_http_error_code(status_code)
    message = _default_http_message(status_code)
    details: dict[str, object] = {
        "status_code": status_code,
        "reason": code.lower(),
        "suggestion": _default_http_suggestion(status_code),
    }

    if isinstance(detail, dict):
        code = str(detail.get("code") or code)
        message = str(detail.get("message") or detail.get("detail") or message)
        raw_details = detail.get("details")
        if isinstance(raw_details, dict):
            details.update(raw_details)
        elif raw_details is not None:
            details["details"] = raw_details
        return code, message, details

    if isinstance(detail, str) and detail:
        return code, detail, details

    if detail is not None:
        details["detail"] = detail
    return code, message, details


async def http_exception_handler(request: Request, exc: HTTPException):
    """将协议异常统一包装为标准错误结构。"""
    code, message, details = _parse_http_detail(exc.detail, exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(request, code=code, message=message, details=details),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """请求参数缺失或格式错误统一按 400 返回。"""
    normalized_errors = [
        {
            "field": ".".join(str(item) for item in err.get("loc", []) if item != "body"),
            "message": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload(
            request,
            code="VALIDATION_ERROR",
            message="请求参数校验失败。",
            details={
                "status_code": status.HTTP_400_BAD_REQUEST,
                "reason": "validation_error",
                "suggestion": _default_http_suggestion(status.HTTP_400_BAD_REQUEST),
                "errors": normalized_errors,
            },
        ),
    )


async def account_not_found_handler(request: Request, exc: AccountNotFoundError):
    """账号不存在。"""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_payload(
            request,
            code="ACCOUNT_NOT_FOUND",
            message="账号不存在。",
            details={"status_code": status.HTTP_404_NOT_FOUND, "reason": "account_not_found"},
        ),
    )


async def account_exists_handler(request: Request, exc: AccountExistsError):
    """登录名重复。"""
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_payload(
            request,
            code="ACCOUNT_EXISTS",
            message="登录名已存在。",
            details={"status_code": status.HTTP_409_CONFLICT, "reason": "account_exists"},
        ),
    )


async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailableError):
    """外部依赖失败：服务端记录细节，对外只返回通用信息。"""
    logger.error(
        "upstream unavailable service=%s method=%s path=%s detail=%s",
        exc.service,
        request.method,
        request.url.path,
        exc.detail,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(
            request,
            code="UPSTREAM_UNAVAILABLE",
            message="外部服务暂不可用，请稍后重试。",
            details={
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "reason": "upstream_unavailable",
                "service": exc.service,
            },
        ),
    )


async def credit_ledger_error_handler(request: Request, exc: CreditLedgerError):
    """诊所额度表配置不完整。"""
    logger.error("credit ledger misconfigured path=%s detail=%s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(
            request,
            code="CREDIT_LEDGER_ERROR",
            message="诊所额度配置异常，请联系管理员。",
            details={"status_code": status.HTTP_500_INTERNAL_SERVER_ERROR, "reason": "credit_ledger_error"},
        ),
    )


async def unexpected_exception_handler(request: Request, exc: Exception):
    """处理未捕获异常，避免内部细节泄露。"""
    logger.exception("unexpected error method=%s path=%s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(
            request,
            code="INTERNAL_ERROR",
            message=DEFAULT_ERROR_MESSAGE,
            details={
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "reason": "unexpected_exception",
                "suggestion": "请稍后重试，若持续失败请联系管理员并提供 request_id。",
            },
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """集中注册异常处理器。"""
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(AccountNotFoundError)(account_not_found_handler)
    app.exception_handler(AccountExistsError)(account_exists_handler)
    app.exception_handler(UpstreamUnavailableError)(upstream_unavailable_handler)
    app.exception_handler(CreditLedgerError)(credit_ledger_error_handler)
    app.exception_handler(Exception)(unexpected_exception_handler)
