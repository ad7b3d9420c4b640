"""病历保存与查询。

保存流程按诊所额度把关：
1. 查账号关联诊所，未关联则不限额度，跳过账本。
2. 写入前检查剩余额度，耗尽则拒绝且不写入。
3. 追加病历行成功后扣减 1 个额度，并返回扣减后的剩余额度。
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from jdoc_api.core.errors import quota_exhausted
from jdoc_api.core.security import SessionPayload
from jdoc_api.db.base import RowStore
from jdoc_api.models.clinic import UNLIMITED_CREDITS
from jdoc_api.models.consultation import CONSULTATION_COLUMNS, ConsultationRecord
from jdoc_api.services.credits import ClinicCreditLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    """保存结果。"""

    remaining_credits: int
    unlimited: bool
    saved_at: str


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _is_header(row: list[str]) -> bool:
    return bool(row) and str(row[0]).strip().lower() == CONSULTATION_COLUMNS[0]


async def save_consultation(
    ledger: ClinicCreditLedger,
    store: RowStore,
    *,
    container_id: str,
    sheet: str,
    session: SessionPayload,
    record: ConsultationRecord,
) -> SaveResult:
    """按额度策略保存一条病历。"""
    clinic_id = await ledger.resolve_clinic_for(session.login)
    if clinic_id is not None:
        # 取完整快照而非 has_credits：拒绝时需要诊所名称。
        credits = await ledger.get_credits(clinic_id)
        if credits.remaining_credits <= 0:
            logger.info("consultation refused, quota exhausted login=%s clinic_id=%s", session.login, clinic_id)
            raise quota_exhausted(credits.clinic_name)

    record.doctor_name = record.doctor_name or session.name
    record.saved_at = _utc_now_iso()
    await store.append_row(container_id, sheet, record.to_row())

    if clinic_id is None:
        return SaveResult(remaining_credits=UNLIMITED_CREDITS, unlimited=True, saved_at=record.saved_at)
    remaining = await ledger.decrement(clinic_id)
    return SaveResult(remaining_credits=remaining, unlimited=False, saved_at=record.saved_at)


async def list_consultations(store: RowStore, *, container_id: str, sheet: str) -> list[ConsultationRecord]:
    """按保存时间倒序返回病历，跳过表头与空行。"""
    rows = await store.read_rows(container_id, sheet)
    records = [
        ConsultationRecord.from_row(row, row_number=index)
        for index, row in enumerate(rows, start=1)
        if row and str(row[0]).strip() and not _is_header(row)
    ]
    records.reverse()
    return records


async def delete_consultation(store: RowStore, *, container_id: str, sheet: str, row_number: int) -> None:
    """物理删除病历行，已扣减的额度不返还。"""
    rows = await store.read_rows(container_id, sheet)
    if row_number < 1 or row_number > len(rows) or _is_header(rows[row_number - 1]):
        raise IndexError(row_number)
    await store.delete_row(container_id, sheet, row_number)
