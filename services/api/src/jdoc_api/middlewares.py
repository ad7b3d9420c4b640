"""应用中间件注册。"""

import logging
import re
import uuid
from time import perf_counter

from fastapi import FastAPI, Request

logger = logging.getLogger("jdoc_api.access")

# 仅接受格式可控的上游追踪 ID，避免日志注入。
_INBOUND_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def _resolve_request_id(request: Request) -> str:
    inbound = request.headers.get("x-request-id", "").strip()
    if inbound and _INBOUND_REQUEST_ID.match(inbound):
        return inbound
    return str(uuid.uuid4())


async def request_id_middleware(request: Request, call_next):
    """注入请求追踪 ID 与耗时，并记录访问日志。"""
    request.state.request_id = _resolve_request_id(request)
    request.state.request_started_at = perf_counter()
    response = await call_next(request)
    elapsed_ms = round((perf_counter() - request.state.request_started_at) * 1000, 2)
    response.headers["X-Request-Id"] = request.state.request_id
    response.headers["X-Process-Time-Ms"] = str(elapsed_ms)
    logger.info(
        "%s %s status=%s request_id=%s elapsed_ms=%s",
        request.method,
        request.url.path,
        response.status_code,
        request.state.request_id,
        elapsed_ms,
    )
    return response


def register_middlewares(app: FastAPI) -> None:
    """集中注册中间件。"""
    app.middleware("http")(request_id_middleware)
