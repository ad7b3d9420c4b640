"""请求上下文依赖。

职责:
1. 解析并校验会话令牌，得到 SessionPayload。
2. 按角色做路由级权限限制。
3. 提供行存储、限流器、账号仓库、额度账本与分析服务，测试中可整体替换。
"""

from functools import lru_cache

from fastapi import Depends, Request

from jdoc_api.core.config import get_settings
from jdoc_api.core.errors import FORBIDDEN
from jdoc_api.core.rate_limit import RateLimiter, build_rate_limit_store
from jdoc_api.core.security import SessionPayload, parse_session_headers
from jdoc_api.db.base import RowStore
from jdoc_api.db.session import get_row_store
from jdoc_api.models.enums import UserRole
from jdoc_api.services.accounts import AccountRepository
from jdoc_api.services.analysis import AnalysisService, build_analysis_client
from jdoc_api.services.credits import ClinicCreditLedger


def require_auth(request: Request) -> SessionPayload:
    """要求请求携带有效会话令牌，否则 401。"""
    return parse_session_headers(request.headers)


def require_admin(session: SessionPayload = Depends(require_auth)) -> SessionPayload:
    """在登录基础上要求管理员角色，否则 403。"""
    if session.role != UserRole.ADMIN:
        raise FORBIDDEN
    return session


@lru_cache
def get_rate_limiter() -> RateLimiter:
    """进程级共享的登录限流器。"""
    return RateLimiter(build_rate_limit_store(get_settings()))


def get_account_repository(store: RowStore = Depends(get_row_store)) -> AccountRepository:
    settings = get_settings()
    return AccountRepository(store, container_id=settings.main_spreadsheet_id, sheet=settings.users_sheet)


def get_credit_ledger(
    store: RowStore = Depends(get_row_store),
    accounts: AccountRepository = Depends(get_account_repository),
) -> ClinicCreditLedger:
    return ClinicCreditLedger(store, accounts, settings_sheet=get_settings().settings_sheet)


@lru_cache
def get_analysis_service() -> AnalysisService:
    """首次使用时才构造模型客户端，未配置密钥时抛出外部依赖不可用。"""
    settings = get_settings()
    return AnalysisService(build_analysis_client(settings), settings)
