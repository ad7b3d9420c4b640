"""登录与会话接口。"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from starlette.concurrency import run_in_threadpool

from jdoc_api.core.config import get_settings
from jdoc_api.core.errors import account_disabled, invalid_credentials, rate_limited
from jdoc_api.core.rate_limit import RateLimiter
from jdoc_api.core.security import SessionPayload, sign_session
from jdoc_api.dependencies import get_account_repository, get_rate_limiter, require_auth
from jdoc_api.schemas.auth import LoginData, LoginRequest, SessionData
from jdoc_api.schemas.common import ErrorResponse, SuccessResponse
from jdoc_api.services.accounts import AccountRepository
from jdoc_api.services.local_auth import is_legacy_hash, migrate_legacy_password, verify_password
from jdoc_api.utils.request import client_ip
from jdoc_api.utils.response import success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    summary="账号口令登录",
    description="校验账号口令并签发会话令牌；同一客户端 IP 在窗口期内的尝试次数受限。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[LoginData],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def login(
    payload: LoginRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    accounts: AccountRepository = Depends(get_account_repository),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """登录并签发会话令牌，历史摘要账号在后台升级为 bcrypt。"""
    settings = get_settings()
    limit_key = f"login:{client_ip(request)}"
    allowed = await run_in_threadpool(
        limiter.check_and_consume,
        limit_key,
        settings.login_rate_limit_max_attempts,
        settings.login_rate_limit_window_seconds,
    )
    if not allowed:
        logger.warning("login rate limited key=%s", limit_key)
        retry_after = await run_in_threadpool(
            limiter.retry_after,
            limit_key,
            settings.login_rate_limit_max_attempts,
            settings.login_rate_limit_window_seconds,
        )
        raise rate_limited(retry_after)

    account = await accounts.find_by_login(payload.login)
    if account is None:
        raise invalid_credentials()
    # bcrypt 校验为 CPU 密集操作，放到线程池避免阻塞事件循环。
    if not await run_in_threadpool(verify_password, payload.password, account.password_hash):
        logger.info("login failed login=%s", account.login)
        raise invalid_credentials()
    if not account.active:
        raise account_disabled()

    if is_legacy_hash(account.password_hash):
        background_tasks.add_task(migrate_legacy_password, accounts, account.login, payload.password)

    token = sign_session(SessionPayload(login=account.login.lower(), role=str(account.role), name=account.name))
    logger.info("login succeeded login=%s role=%s", account.login, account.role)
    return success(
        request,
        {
            "token": token,
            "token_type": "session",
            "user": {
                "login": account.login,
                "name": account.name,
                "specialty": account.specialty,
                "role": str(account.role),
                "clinic_id": account.clinic_id,
            },
        },
    )


@router.get(
    "/me",
    summary="获取当前会话",
    description="返回会话令牌中的账号信息。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[SessionData],
    responses={401: {"model": ErrorResponse}},
)
def me(request: Request, session: SessionPayload = Depends(require_auth)):
    return success(request, {"login": session.login, "role": session.role, "name": session.name})
