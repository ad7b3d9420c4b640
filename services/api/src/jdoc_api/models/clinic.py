"""诊所额度快照。"""

from dataclasses import dataclass

# 未关联诊所的账号不限额度，对外以 -1 表示。
UNLIMITED_CREDITS = -1


@dataclass(frozen=True)
class ClinicCredits:
    """诊所额度只读快照，剩余额度为派生值。"""

    clinic_name: str
    total_credits: int
    used_credits: int

    @property
    def remaining_credits(self) -> int:
        return self.total_credits - self.used_credits
