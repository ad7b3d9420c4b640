"""诊所额度账本。

每个诊所有独立的表格容器，其 Settings 工作表为键值行（A 列键，B 列值）：
clinic_name / total_credits / used_credits。

“检查额度”与“扣减额度”是两次独立调用，对外部存储不具备原子性：
同一诊所的并发保存可能同时通过检查并各自扣减，导致短暂超用（软限制）。
需要硬上限时应在存储层实现“有余额才扣减”的原子操作。
"""

import logging
import re

from jdoc_api.db.base import RowStore, cell_address
from jdoc_api.models.clinic import ClinicCredits
from jdoc_api.services.accounts import AccountRepository

logger = logging.getLogger(__name__)

KEY_CLINIC_NAME = "clinic_name"
KEY_TOTAL_CREDITS = "total_credits"
KEY_USED_CREDITS = "used_credits"
DEFAULT_CLINIC_NAME = "Unknown Clinic"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class CreditLedgerError(RuntimeError):
    """诊所 Settings 表结构不完整。"""


def _parse_int(value: str | None) -> int:
    """按前导数字解析整数，无法解析时为 0。"""
    if value is None:
        return 0
    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    return int(match.group(1))


def _settings_map(rows: list[list[str]]) -> dict[str, tuple[int, str]]:
    """键 -> (1 基行号, 原始值)，同名键以最后一行为准。"""
    settings: dict[str, tuple[int, str]] = {}
    for index, row in enumerate(rows, start=1):
        if not row or not str(row[0]).strip():
            continue
        # 表格接口会省略行尾空单元格。
        value = str(row[1]) if len(row) > 1 else ""
        settings[str(row[0]).strip().lower()] = (index, value)
    return settings


def _require_used_credits(settings: dict[str, tuple[int, str]], clinic_id: str) -> None:
    if KEY_USED_CREDITS not in settings:
        raise CreditLedgerError(f"settings sheet of clinic {clinic_id} has no {KEY_USED_CREDITS} row")


class ClinicCreditLedger:
    """读写诊所额度。外部存储不可用时直接抛错，不会退化为不限额度。"""

    def __init__(self, store: RowStore, accounts: AccountRepository, *, settings_sheet: str) -> None:
        self.store = store
        self.accounts = accounts
        self.settings_sheet = settings_sheet

    async def resolve_clinic_for(self, login: str) -> str | None:
        """返回账号关联的诊所容器 ID，None 表示不限额度。"""
        return await self.accounts.resolve_clinic_id(login)

    async def _read(self, clinic_id: str) -> dict[str, tuple[int, str]]:
        return _settings_map(await self.store.read_rows(clinic_id, self.settings_sheet))

    async def get_credits(self, clinic_id: str) -> ClinicCredits:
        """读取额度快照；缺少 used_credits 行时抛出 CreditLedgerError，避免先写入后无法扣减。"""
        settings = await self._read(clinic_id)
        _require_used_credits(settings, clinic_id)
        name = settings.get(KEY_CLINIC_NAME, (0, ""))[1].strip()
        return ClinicCredits(
            clinic_name=name or DEFAULT_CLINIC_NAME,
            total_credits=_parse_int(settings.get(KEY_TOTAL_CREDITS, (0, "0"))[1]),
            used_credits=_parse_int(settings[KEY_USED_CREDITS][1]),
        )

    async def has_credits(self, clinic_id: str) -> bool:
        return (await self.get_credits(clinic_id)).remaining_credits > 0

    async def decrement(self, clinic_id: str) -> int:
        """已用额度加 1 并写回，返回扣减后的剩余额度。"""
        settings = await self._read(clinic_id)
        _require_used_credits(settings, clinic_id)

        row_number, raw_used = settings[KEY_USED_CREDITS]
        total = _parse_int(settings.get(KEY_TOTAL_CREDITS, (0, "0"))[1])
        new_used = _parse_int(raw_used) + 1
        await self.store.update_cell(clinic_id, self.settings_sheet, cell_address(1, row_number), str(new_used))
        remaining = total - new_used
        logger.info("clinic credit consumed clinic_id=%s used=%s remaining=%s", clinic_id, new_used, remaining)
        return remaining
