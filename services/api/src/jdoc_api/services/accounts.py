"""账号存储服务（Users 工作表）。"""

from jdoc_api.db.base import RowStore, cell_address
from jdoc_api.models.account import COL_ACTIVE, COL_PASSWORD_HASH, USER_COLUMNS, UserAccount
from jdoc_api.models.enums import UserRole


class AccountNotFoundError(LookupError):
    """账号不存在。"""


class AccountExistsError(ValueError):
    """登录名已被占用。"""


def normalize_login(login: str) -> str:
    """登录名统一去空白并转小写。"""
    return login.strip().lower()


class AccountRepository:
    """读写 Users 工作表，首行为表头。"""

    def __init__(self, store: RowStore, *, container_id: str, sheet: str) -> None:
        self.store = store
        self.container_id = container_id
        self.sheet = sheet

    async def _rows(self) -> list[list[str]]:
        return await self.store.read_rows(self.container_id, self.sheet)

    async def list_accounts(self) -> list[UserAccount]:
        rows = await self._rows()
        # 数据行从第 2 行开始。
        return [
            UserAccount.from_row(row, row_number=index)
            for index, row in enumerate(rows[1:], start=2)
            if row and str(row[0]).strip()
        ]

    async def find_by_login(self, login: str) -> UserAccount | None:
        target = normalize_login(login)
        if not target:
            return None
        for account in await self.list_accounts():
            if account.login.lower() == target:
                return account
        return None

    async def _require(self, login: str) -> UserAccount:
        account = await self.find_by_login(login)
        if account is None or account.row_number is None:
            raise AccountNotFoundError(login)
        return account

    async def create_account(
        self,
        *,
        login: str,
        password_hash: str,
        name: str,
        specialty: str = "",
        role: str = UserRole.DOCTOR,
        clinic_id: str | None = None,
    ) -> UserAccount:
        normalized = normalize_login(login)
        if await self.find_by_login(normalized) is not None:
            raise AccountExistsError(normalized)
        account = UserAccount(
            login=normalized,
            password_hash=password_hash,
            name=name.strip(),
            specialty=specialty.strip(),
            role=role,
            active=True,
            clinic_id=(clinic_id or "").strip() or None,
        )
        await self.store.append_row(self.container_id, self.sheet, account.to_row())
        return account

    async def update_password_hash(self, login: str, password_hash: str) -> None:
        # 每次写入前重新定位行号，行位置可能已被其他操作改变。
        account = await self._require(login)
        address = cell_address(COL_PASSWORD_HASH, account.row_number)
        await self.store.update_cell(self.container_id, self.sheet, address, password_hash)

    async def deactivate(self, login: str) -> UserAccount:
        """软删除：仅将 active 置为 false。"""
        account = await self._require(login)
        address = cell_address(COL_ACTIVE, account.row_number)
        await self.store.update_cell(self.container_id, self.sheet, address, "false")
        account.active = False
        return account

    async def resolve_clinic_id(self, login: str) -> str | None:
        account = await self.find_by_login(login)
        if account is None:
            return None
        return account.clinic_id

    async def ensure_header(self) -> bool:
        """表为空时写入表头，返回是否写入。"""
        rows = await self._rows()
        if rows:
            return False
        await self.store.append_row(self.container_id, self.sheet, list(USER_COLUMNS))
        return True
