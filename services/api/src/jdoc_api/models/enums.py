"""领域枚举定义。"""

from enum import StrEnum


class UserRole(StrEnum):
    """账号角色。"""

    DOCTOR = "doctor"  # 医生，可录制、分析并保存病历。
    ADMIN = "admin"  # 管理员，额外可管理账号与删除病历。
