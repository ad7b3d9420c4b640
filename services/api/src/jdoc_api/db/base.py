"""行存储协议。

行存储是“表格式”的外部持久化：容器（一个电子表格）内含多个命名工作表，
每个工作表是字符串单元格组成的行列表。行号与 A1 地址均从 1 开始。
"""

import re
from typing import Protocol

_A1_PATTERN = re.compile(r"^([A-Za-z]+)([1-9][0-9]*)$")


class RowStore(Protocol):
    """行存储协作方接口。"""

    async def read_rows(self, container_id: str, sheet: str) -> list[list[str]]: ...

    async def append_row(self, container_id: str, sheet: str, values: list[str]) -> None: ...

    async def update_cell(self, container_id: str, sheet: str, address: str, value: str) -> None: ...

    async def delete_row(self, container_id: str, sheet: str, row_number: int) -> None: ...

    async def ensure_sheet(self, container_id: str, sheet: str) -> bool: ...


def column_letter(column_index: int) -> str:
    """0 基列序号转列字母（0 -> A，26 -> AA）。"""
    if column_index < 0:
        raise ValueError("column_index must be >= 0")
    letters = ""
    number = column_index + 1
    while number:
        number, remainder = divmod(number - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def cell_address(column_index: int, row_number: int) -> str:
    """构造单元格 A1 地址。"""
    if row_number < 1:
        raise ValueError("row_number must be >= 1")
    return f"{column_letter(column_index)}{row_number}"


def parse_cell_address(address: str) -> tuple[int, int]:
    """解析 A1 地址，返回 (0 基列序号, 1 基行号)。"""
    match = _A1_PATTERN.match(address.strip())
    if not match:
        raise ValueError(f"invalid cell address: {address!r}")
    letters, row_text = match.groups()
    column_index = 0
    for char in letters.upper():
        column_index = column_index * 26 + (ord(char) - ord("A") + 1)
    return column_index - 1, int(row_text)
