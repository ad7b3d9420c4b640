"""账号管理接口（仅管理员）。"""

import logging

from fastapi import APIRouter, Depends, Path, Request, status
from starlette.concurrency import run_in_threadpool

from jdoc_api.core.errors import bad_request
from jdoc_api.core.security import SessionPayload
from jdoc_api.dependencies import get_account_repository, require_admin
from jdoc_api.models.account import UserAccount
from jdoc_api.schemas.common import ErrorResponse, SuccessResponse
from jdoc_api.schemas.user import UserCreateRequest, UserData
from jdoc_api.services.accounts import AccountRepository
from jdoc_api.services.local_auth import MAX_PASSWORD_BYTES, hash_password
from jdoc_api.utils.response import success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _user_data(account: UserAccount) -> dict:
    return {
        "login": account.login,
        "name": account.name,
        "specialty": account.specialty,
        "role": str(account.role),
        "active": account.active,
        "clinic_id": account.clinic_id,
    }


@router.get(
    "",
    summary="查询账号列表",
    description="返回全部账号（含已停用账号），不包含口令哈希。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[list[UserData]],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_users(
    request: Request,
    _admin: SessionPayload = Depends(require_admin),
    accounts: AccountRepository = Depends(get_account_repository),
):
    return success(request, [_user_data(account) for account in await accounts.list_accounts()])


@router.post(
    "",
    summary="创建账号",
    description="以 bcrypt 哈希保存初始口令，默认角色为医生。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserData],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_user(
    payload: UserCreateRequest,
    request: Request,
    admin: SessionPayload = Depends(require_admin),
    accounts: AccountRepository = Depends(get_account_repository),
):
    """创建账号，登录名重复返回 409。"""
    try:
        password_hash = await run_in_threadpool(hash_password, payload.password)
    except ValueError as exc:
        raise bad_request("口令过长。", max_bytes=MAX_PASSWORD_BYTES) from exc

    account = await accounts.create_account(
        login=payload.login,
        password_hash=password_hash,
        name=payload.name,
        specialty=payload.specialty,
        role=payload.role,
        clinic_id=payload.clinic_id,
    )
    logger.info("account created login=%s role=%s by=%s", account.login, account.role, admin.login)
    return success(request, _user_data(account))


@router.delete(
    "/{login}",
    summary="停用账号",
    description="软删除：将账号标记为停用，保留其历史记录。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserData],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def deactivate_user(
    request: Request,
    login: str = Path(..., min_length=1, description="目标登录名。"),
    admin: SessionPayload = Depends(require_admin),
    accounts: AccountRepository = Depends(get_account_repository),
):
    account = await accounts.deactivate(login)
    logger.info("account deactivated login=%s by=%s", account.login, admin.login)
    return success(request, _user_data(account))
