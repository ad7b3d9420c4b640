"""领域记录导出集合。"""

from jdoc_api.models.account import USER_COLUMNS, UserAccount
from jdoc_api.models.clinic import UNLIMITED_CREDITS, ClinicCredits
from jdoc_api.models.consultation import CONSULTATION_COLUMNS, ConsultationRecord
from jdoc_api.models.enums import UserRole

__all__ = [
    "CONSULTATION_COLUMNS",
    "ClinicCredits",
    "ConsultationRecord",
    "UNLIMITED_CREDITS",
    "USER_COLUMNS",
    "UserAccount",
    "UserRole",
]
