"""病历保存、查询与删除接口。"""

import logging

from fastapi import APIRouter, Depends, Path, Request, status

from jdoc_api.core.config import get_settings
from jdoc_api.core.errors import not_found
from jdoc_api.core.security import SessionPayload
from jdoc_api.db.base import RowStore
from jdoc_api.db.session import get_row_store
from jdoc_api.dependencies import get_credit_ledger, require_admin, require_auth
from jdoc_api.models.consultation import ConsultationRecord
from jdoc_api.schemas.common import ErrorResponse, SuccessResponse
from jdoc_api.schemas.consultation import ConsultationData, ConsultationSaveData, ConsultationSaveRequest
from jdoc_api.services.consultations import delete_consultation, list_consultations, save_consultation
from jdoc_api.services.credits import ClinicCreditLedger
from jdoc_api.utils.response import success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/consultations", tags=["consultations"])


@router.post(
    "",
    summary="保存病历",
    description="按诊所额度保存病历：额度耗尽时返回 403 且不写入；保存成功后扣减 1 个额度。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[ConsultationSaveData],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_consultation(
    payload: ConsultationSaveRequest,
    request: Request,
    session: SessionPayload = Depends(require_auth),
    ledger: ClinicCreditLedger = Depends(get_credit_ledger),
    store: RowStore = Depends(get_row_store),
):
    settings = get_settings()
    record = ConsultationRecord(**payload.model_dump())
    result = await save_consultation(
        ledger,
        store,
        container_id=settings.main_spreadsheet_id,
        sheet=settings.consultations_sheet,
        session=session,
        record=record,
    )
    logger.info(
        "consultation saved login=%s remaining=%s unlimited=%s",
        session.login,
        result.remaining_credits,
        result.unlimited,
    )
    return success(
        request,
        {
            "saved": True,
            "saved_at": result.saved_at,
            "remaining_credits": result.remaining_credits,
            "unlimited": result.unlimited,
        },
    )


@router.get(
    "",
    summary="查询病历列表",
    description="按保存时间倒序返回全部病历。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[list[ConsultationData]],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_consultations(
    request: Request,
    _session: SessionPayload = Depends(require_auth),
    store: RowStore = Depends(get_row_store),
):
    settings = get_settings()
    records = await list_consultations(
        store,
        container_id=settings.main_spreadsheet_id,
        sheet=settings.consultations_sheet,
    )
    return success(request, [record.as_dict() for record in records])


@router.delete(
    "/{row_number}",
    summary="删除病历",
    description="物理删除指定行病历，已扣减的额度不返还。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[dict],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def remove_consultation(
    request: Request,
    row_number: int = Path(..., ge=1, description="病历所在表格行号。"),
    admin: SessionPayload = Depends(require_admin),
    store: RowStore = Depends(get_row_store),
):
    settings = get_settings()
    try:
        await delete_consultation(
            store,
            container_id=settings.main_spreadsheet_id,
            sheet=settings.consultations_sheet,
            row_number=row_number,
        )
    except IndexError as exc:
        raise not_found("病历不存在。") from exc
    logger.info("consultation deleted row=%s by=%s", row_number, admin.login)
    return success(request, {"deleted": True, "row_number": row_number})
