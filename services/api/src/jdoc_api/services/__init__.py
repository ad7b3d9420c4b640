"""服务层能力导出集合。"""

from jdoc_api.services.account_bootstrap import bootstrap_accounts
from jdoc_api.services.accounts import AccountExistsError, AccountNotFoundError, AccountRepository, normalize_login
from jdoc_api.services.analysis import AnalysisResult, AnalysisService, build_analysis_client
from jdoc_api.services.consultations import SaveResult, delete_consultation, list_consultations, save_consultation
from jdoc_api.services.credits import ClinicCreditLedger, CreditLedgerError
from jdoc_api.services.local_auth import (
    hash_password,
    is_legacy_hash,
    legacy_digest,
    migrate_legacy_password,
    verify_password,
)

__all__ = [
    "AccountExistsError",
    "AccountNotFoundError",
    "AccountRepository",
    "AnalysisResult",
    "AnalysisService",
    "ClinicCreditLedger",
    "CreditLedgerError",
    "SaveResult",
    "bootstrap_accounts",
    "build_analysis_client",
    "delete_consultation",
    "hash_password",
    "is_legacy_hash",
    "legacy_digest",
    "list_consultations",
    "migrate_legacy_password",
    "normalize_login",
    "save_consultation",
    "verify_password",
]
