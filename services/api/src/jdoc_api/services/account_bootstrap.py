"""账号表初始化服务。"""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from jdoc_api.core.config import Settings
from jdoc_api.db.base import RowStore
from jdoc_api.models.consultation import CONSULTATION_COLUMNS
from jdoc_api.models.enums import UserRole
from jdoc_api.services.accounts import AccountRepository
from jdoc_api.services.local_auth import hash_password

logger = logging.getLogger(__name__)


async def bootstrap_accounts(store: RowStore, settings: Settings) -> bool:
    """确保 Users/病历表存在；账号表为空且配置了初始管理员时创建管理员，返回是否创建。"""
    container_id = settings.main_spreadsheet_id
    for sheet in (settings.users_sheet, settings.consultations_sheet):
        if await store.ensure_sheet(container_id, sheet):
            logger.info("sheet created container=%s sheet=%s", container_id, sheet)

    accounts = AccountRepository(store, container_id=container_id, sheet=settings.users_sheet)
    await accounts.ensure_header()
    if not await store.read_rows(container_id, settings.consultations_sheet):
        await store.append_row(container_id, settings.consultations_sheet, list(CONSULTATION_COLUMNS))

    if not settings.bootstrap_admin_login or not settings.bootstrap_admin_password:
        return False
    if await accounts.list_accounts():
        return False

    password_hash = await run_in_threadpool(hash_password, settings.bootstrap_admin_password)
    account = await accounts.create_account(
        login=settings.bootstrap_admin_login,
        password_hash=password_hash,
        name=settings.bootstrap_admin_name,
        specialty=settings.bootstrap_admin_specialty,
        role=UserRole.ADMIN,
    )
    logger.info("bootstrap admin created login=%s", account.login)
    return True
