"""Google Sheets 行存储。

googleapiclient 为同步阻塞调用，统一放到线程池执行；每次调用构造独立的服务对象，
避免多个线程共享同一个 httplib2 连接。
"""

import logging
from typing import Any

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error
from starlette.concurrency import run_in_threadpool

from jdoc_api.core.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

_UPSTREAM_ERRORS = (HttpError, GoogleAuthError, HttpLib2Error, OSError)


class GoogleSheetsRowStore:
    """基于服务账号访问 Sheets v4 接口。"""

    def __init__(self, *, client_email: str, private_key: str) -> None:
        self._credentials = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": client_email,
                "private_key": private_key,
                "token_uri": TOKEN_URI,
            },
            scopes=SCOPES,
        )

    def _spreadsheets(self):
        service = build("sheets", "v4", credentials=self._credentials, cache_discovery=False)
        return service.spreadsheets()

    async def _call(self, operation: str, func, *args: Any) -> Any:
        try:
            return await run_in_threadpool(func, *args)
        except _UPSTREAM_ERRORS as exc:
            logger.warning("sheets %s failed: %s", operation, exc)
            raise UpstreamUnavailableError("sheets", f"{operation}: {exc}") from exc

    async def read_rows(self, container_id: str, sheet: str) -> list[list[str]]:
        def _read() -> list[list[str]]:
            response = (
                self._spreadsheets()
                .values()
                .get(spreadsheetId=container_id, range=f"{sheet}!A:Z")
                .execute()
            )
            return [[str(cell) for cell in row] for row in response.get("values", [])]

        return await self._call("read_rows", _read)

    async def append_row(self, container_id: str, sheet: str, values: list[str]) -> None:
        def _append() -> None:
            (
                self._spreadsheets()
                .values()
                .append(
                    spreadsheetId=container_id,
                    range=f"{sheet}!A:A",
                    valueInputOption="RAW",
                    insertDataOption="INSERT_ROWS",
                    body={"values": [[str(value) for value in values]]},
                )
                .execute()
            )

        await self._call("append_row", _append)

    async def update_cell(self, container_id: str, sheet: str, address: str, value: str) -> None:
        def _update() -> None:
            (
                self._spreadsheets()
                .values()
                .update(
                    spreadsheetId=container_id,
                    range=f"{sheet}!{address}",
                    valueInputOption="RAW",
                    body={"values": [[str(value)]]},
                )
                .execute()
            )

        await self._call("update_cell", _update)

    def _sheet_id(self, container_id: str, sheet: str) -> int | None:
        metadata = self._spreadsheets().get(spreadsheetId=container_id, fields="sheets.properties").execute()
        for item in metadata.get("sheets", []):
            properties = item.get("properties", {})
            if properties.get("title") == sheet:
                return properties.get("sheetId")
        return None

    async def delete_row(self, container_id: str, sheet: str, row_number: int) -> None:
        if row_number < 1:
            raise IndexError("row_number must be >= 1")

        def _delete() -> None:
            sheet_id = self._sheet_id(container_id, sheet)
            if sheet_id is None:
                raise IndexError(f"sheet {sheet!r} not found")
            self._spreadsheets().batchUpdate(
                spreadsheetId=container_id,
                body={
                    "requests": [
                        {
                            "deleteDimension": {
                                "range": {
                                    "sheetId": sheet_id,
                                    "dimension": "ROWS",
                                    "startIndex": row_number - 1,
                                    "endIndex": row_number,
                                }
                            }
                        }
                    ]
                },
            ).execute()

        await self._call("delete_row", _delete)

    async def ensure_sheet(self, container_id: str, sheet: str) -> bool:
        def _ensure() -> bool:
            if self._sheet_id(container_id, sheet) is not None:
                return False
            self._spreadsheets().batchUpdate(
                spreadsheetId=container_id,
                body={"requests": [{"addSheet": {"properties": {"title": sheet}}}]},
            ).execute()
            return True

        return await self._call("ensure_sheet", _ensure)
