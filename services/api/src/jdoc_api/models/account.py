"""账号记录。

Users 工作表首行为表头，列顺序固定：
login | password_hash | name | specialty | role | active | clinic_id
"""

from dataclasses import dataclass

from jdoc_api.models.enums import UserRole

USER_COLUMNS = ("login", "password_hash", "name", "specialty", "role", "active", "clinic_id")

COL_LOGIN = 0
COL_PASSWORD_HASH = 1
COL_NAME = 2
COL_SPECIALTY = 3
COL_ROLE = 4
COL_ACTIVE = 5
COL_CLINIC_ID = 6


def _cell(row: list[str], index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index])
    return ""


@dataclass
class UserAccount:
    """Users 表中的一行账号。"""

    # 登录名，大小写不敏感。
    login: str
    # bcrypt 哈希或历史 SHA-256 摘要。
    password_hash: str
    # 展示名。
    name: str
    # 专科。
    specialty: str
    # 角色（doctor/admin）。
    role: str
    # 软删除标记，停用后不可登录。
    active: bool
    # 关联诊所的表格 ID，为空表示不限额度。
    clinic_id: str | None
    # 所在行号（1 基，含表头）。
    row_number: int | None = None

    @classmethod
    def from_row(cls, row: list[str], *, row_number: int | None = None) -> "UserAccount":
        clinic_id = _cell(row, COL_CLINIC_ID).strip()
        return cls(
            login=_cell(row, COL_LOGIN).strip(),
            password_hash=_cell(row, COL_PASSWORD_HASH).strip(),
            name=_cell(row, COL_NAME),
            specialty=_cell(row, COL_SPECIALTY),
            role=_cell(row, COL_ROLE).strip().lower() or UserRole.DOCTOR,
            # 只有显式写 false 才视为停用。
            active=_cell(row, COL_ACTIVE).strip().lower() != "false",
            clinic_id=clinic_id or None,
            row_number=row_number,
        )

    def to_row(self) -> list[str]:
        return [
            self.login,
            self.password_hash,
            self.name,
            self.specialty,
            str(self.role),
            "true" if self.active else "false",
            self.clinic_id or "",
        ]
