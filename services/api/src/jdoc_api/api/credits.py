"""诊所额度查询接口。"""

from fastapi import APIRouter, Depends, Query, Request, status

from jdoc_api.core.errors import FORBIDDEN
from jdoc_api.core.security import SessionPayload
from jdoc_api.dependencies import get_credit_ledger, require_auth
from jdoc_api.models.clinic import UNLIMITED_CREDITS
from jdoc_api.models.enums import UserRole
from jdoc_api.schemas.common import ErrorResponse, SuccessResponse
from jdoc_api.schemas.credits import CreditsData
from jdoc_api.services.accounts import normalize_login
from jdoc_api.services.credits import ClinicCreditLedger
from jdoc_api.utils.response import success

router = APIRouter(prefix="/credits", tags=["credits"])

_UNLIMITED = {
    "clinic_name": None,
    "total_credits": UNLIMITED_CREDITS,
    "used_credits": 0,
    "remaining_credits": UNLIMITED_CREDITS,
    "unlimited": True,
}


@router.get(
    "",
    summary="查询诊所额度",
    description="默认查询当前账号所属诊所；管理员可通过 login 参数查询其他账号。未关联诊所时返回不限额度。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[CreditsData],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_credits(
    request: Request,
    login: str | None = Query(default=None, description="目标登录名，仅管理员可用。"),
    session: SessionPayload = Depends(require_auth),
    ledger: ClinicCreditLedger = Depends(get_credit_ledger),
):
    target = session.login
    if login and normalize_login(login) != session.login:
        if session.role != UserRole.ADMIN:
            raise FORBIDDEN
        target = normalize_login(login)

    clinic_id = await ledger.resolve_clinic_for(target)
    if clinic_id is None:
        return success(request, dict(_UNLIMITED))

    credits = await ledger.get_credits(clinic_id)
    return success(
        request,
        {
            "clinic_name": credits.clinic_name,
            "total_credits": credits.total_credits,
            "used_credits": credits.used_credits,
            "remaining_credits": credits.remaining_credits,
            "unlimited": False,
        },
    )
