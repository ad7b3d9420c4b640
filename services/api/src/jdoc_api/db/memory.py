"""进程内行存储，用于本地开发与测试。"""

from jdoc_api.db.base import parse_cell_address


class InMemoryRowStore:
    """以字典模拟电子表格容器。"""

    def __init__(self, initial: dict[str, dict[str, list[list[str]]]] | None = None) -> None:
        self._containers: dict[str, dict[str, list[list[str]]]] = {}
        for container_id, sheets in (initial or {}).items():
            for sheet, rows in sheets.items():
                self._sheet(container_id, sheet).extend([list(row) for row in rows])

    def _sheet(self, container_id: str, sheet: str) -> list[list[str]]:
        return self._containers.setdefault(container_id, {}).setdefault(sheet, [])

    async def read_rows(self, container_id: str, sheet: str) -> list[list[str]]:
        return [list(row) for row in self._sheet(container_id, sheet)]

    async def append_row(self, container_id: str, sheet: str, values: list[str]) -> None:
        self._sheet(container_id, sheet).append([str(value) for value in values])

    async def update_cell(self, container_id: str, sheet: str, address: str, value: str) -> None:
        column_index, row_number = parse_cell_address(address)
        rows = self._sheet(container_id, sheet)
        while len(rows) < row_number:
            rows.append([])
        row = rows[row_number - 1]
        if len(row) <= column_index:
            row.extend([""] * (column_index + 1 - len(row)))
        row[column_index] = str(value)

    async def delete_row(self, container_id: str, sheet: str, row_number: int) -> None:
        rows = self._sheet(container_id, sheet)
        if row_number < 1 or row_number > len(rows):
            raise IndexError(f"row {row_number} out of range for sheet {sheet!r}")
        del rows[row_number - 1]

    async def ensure_sheet(self, container_id: str, sheet: str) -> bool:
        sheets = self._containers.setdefault(container_id, {})
        if sheet in sheets:
            return False
        sheets[sheet] = []
        return True
