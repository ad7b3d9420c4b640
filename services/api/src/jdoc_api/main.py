"""FastAPI 应用入口点。"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from jdoc_api.api.router import api_router
from jdoc_api.core.config import get_settings
from jdoc_api.db.session import get_row_store
from jdoc_api.exceptions import register_exception_handlers
from jdoc_api.middlewares import register_middlewares
from jdoc_api.services.account_bootstrap import bootstrap_accounts

settings = get_settings()
logger = logging.getLogger("jdoc_api")


def _setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """启动时初始化账号表。"""
    await bootstrap_accounts(get_row_store(), settings)
    logger.info("service started env=%s backend=%s", settings.app_env, settings.row_store_backend)
    yield


def create_app() -> FastAPI:
    """创建并配置 FastAPI 应用实例。"""
    _setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        debug=settings.app_debug,
        lifespan=lifespan,
        description=(
            "医生接诊录音转写与病历助手接口。\n\n"
            "所有业务接口统一返回：`{request_id, data, meta}`。\n"
            f"通过请求头 `{settings.session_header}` 携带会话令牌进行认证。"
        ),
        openapi_tags=[
            {"name": "health", "description": "服务存活探针。"},
            {"name": "auth", "description": "账号口令登录与当前会话。"},
            {"name": "users", "description": "账号管理（仅管理员）。"},
            {"name": "credits", "description": "诊所额度查询。"},
            {"name": "analysis", "description": "接诊录音转写与结构化分析。"},
            {"name": "consultations", "description": "病历保存、查询与删除。"},
        ],
    )

    register_middlewares(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
