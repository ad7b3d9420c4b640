import os

# 先于应用导入设置，保证模块级配置读取到测试值。
os.environ["JD_SESSION_SECRET"] = "unit-test-secret"
os.environ["JD_PASSWORD_BCRYPT_ROUNDS"] = "4"
os.environ["JD_ROW_STORE_BACKEND"] = "memory"

import pytest
from fastapi.testclient import TestClient
from limits.storage import MemoryStorage

from jdoc_api.core.config import get_settings
from jdoc_api.core.rate_limit import LimitsRateLimitStore, RateLimiter
from jdoc_api.db.memory import InMemoryRowStore
from jdoc_api.db.session import get_row_store
from jdoc_api.dependencies import get_analysis_service, get_rate_limiter
from jdoc_api.main import app
from jdoc_api.models.account import USER_COLUMNS
from jdoc_api.models.consultation import CONSULTATION_COLUMNS
from jdoc_api.services.analysis import AnalysisResult
from jdoc_api.services.local_auth import hash_password, legacy_digest

MAIN = "main"
LIMITED_CLINIC = "clinic-limited"
EXHAUSTED_CLINIC = "clinic-exhausted"

PASSWORDS = {
    "legacy.doc": "legacy-pass",
    "admin": "admin-pass",
    "clinic.doc": "clinic-pass",
    "empty.doc": "empty-pass",
    "disabled.doc": "disabled-pass",
}


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def build_seeded_store() -> InMemoryRowStore:
    users = [
        list(USER_COLUMNS),
        ["legacy.doc", legacy_digest(PASSWORDS["legacy.doc"]), "Legacy Doctor", "Therapist", "doctor", "true", ""],
        ["admin", hash_password(PASSWORDS["admin"]), "Admin", "", "admin", "TRUE", ""],
        ["clinic.doc", hash_password(PASSWORDS["clinic.doc"]), "Clinic Doctor", "Neurologist", "doctor", "", LIMITED_CLINIC],
        ["empty.doc", hash_password(PASSWORDS["empty.doc"]), "Empty Doctor", "Surgeon", "doctor", "true", EXHAUSTED_CLINIC],
        ["disabled.doc", hash_password(PASSWORDS["disabled.doc"]), "Gone Doctor", "", "doctor", "False", ""],
    ]
    return InMemoryRowStore(
        {
            MAIN: {"Users": users, "Consultations": [list(CONSULTATION_COLUMNS)]},
            LIMITED_CLINIC: {
                "Settings": [["clinic_name", "Limited Clinic"], ["total_credits", "10"], ["used_credits", "3"]],
            },
            EXHAUSTED_CLINIC: {
                "Settings": [["clinic_name", "Exhausted Clinic"], ["total_credits", "10"], ["used_credits", "10"]],
            },
        }
    )


@pytest.fixture
def row_store() -> InMemoryRowStore:
    return build_seeded_store()


@pytest.fixture
def rate_limiter() -> RateLimiter:
    return RateLimiter(LimitsRateLimitStore(MemoryStorage()))


class StubAnalysisService:
    """记录调用并返回固定结果的分析服务。"""

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    async def analyze(self, filename: str, content: bytes) -> AnalysisResult:
        self.calls.append((filename, len(content)))
        return AnalysisResult(
            text="Пациент Иванов жалуется на боль в спине.",
            fields={"patientName": "Иванов", "complaints": "боль в спине", "procedures": {"HILT": 5}},
        )


@pytest.fixture
def analysis_stub() -> StubAnalysisService:
    return StubAnalysisService()


@pytest.fixture
def api_client(row_store, rate_limiter, analysis_stub):
    app.dependency_overrides.clear()
    app.dependency_overrides[get_row_store] = lambda: row_store
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_analysis_service] = lambda: analysis_stub
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(api_client):
    """登录并返回携带会话令牌的请求头。"""

    def _login(login: str) -> dict[str, str]:
        resp = api_client.post("/api/auth/login", json={"login": login, "password": PASSWORDS[login]})
        assert resp.status_code == 200, resp.text
        return {"x-session-token": resp.json()["data"]["token"]}

    return _login
