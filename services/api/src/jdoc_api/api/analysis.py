"""接诊录音分析接口。"""

import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from jdoc_api.core.config import get_settings
from jdoc_api.core.errors import bad_request
from jdoc_api.core.security import SessionPayload
from jdoc_api.dependencies import get_analysis_service, require_auth
from jdoc_api.schemas.common import ErrorResponse, SuccessResponse
from jdoc_api.schemas.consultation import AnalysisData
from jdoc_api.services.analysis import AnalysisService
from jdoc_api.utils.response import success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post(
    "",
    summary="转写并分析录音",
    description="上传接诊录音（multipart 字段 audio），返回转写文本与抽取出的病历字段。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AnalysisData],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_audio(
    request: Request,
    audio: UploadFile = File(..., description="接诊录音文件。"),
    session: SessionPayload = Depends(require_auth),
    service: AnalysisService = Depends(get_analysis_service),
):
    """超时或模型服务报错直接返回失败，不做重试。"""
    max_bytes = get_settings().max_audio_bytes
    # 多读 1 字节用于判断是否超限。
    content = await audio.read(max_bytes + 1)
    if not content:
        raise bad_request("录音文件为空。")
    if len(content) > max_bytes:
        raise bad_request("录音文件过大。", max_bytes=max_bytes)

    filename = audio.filename or "recording.webm"
    logger.info("analysis requested login=%s filename=%s bytes=%s", session.login, filename, len(content))
    result = await service.analyze(filename, content)
    return success(request, {"text": result.text, "analysis": result.fields})
