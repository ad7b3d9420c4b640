"""账号管理相关请求结构。"""

from pydantic import BaseModel, Field

from jdoc_api.models.enums import UserRole
from jdoc_api.schemas.common import BaseSchema


class UserCreateRequest(BaseModel):
    """管理员创建账号请求体。"""

    login: str = Field(min_length=1, max_length=128, description="登录名，保存时转小写。", examples=["petrova"])
    password: str = Field(min_length=1, max_length=256, description="初始口令。", examples=["initial-pass"])
    name: str = Field(min_length=1, max_length=256, description="展示名。", examples=["Петрова А. А."])
    specialty: str = Field(default="", max_length=256, description="专科。", examples=["Невролог"])
    role: UserRole = Field(default=UserRole.DOCTOR, description="角色，默认医生。")
    clinic_id: str | None = Field(default=None, max_length=256, description="关联诊所表格 ID。")


class UserData(BaseSchema):
    """账号列表项。"""

    login: str = Field(description="登录名。")
    name: str = Field(description="展示名。")
    specialty: str = Field(description="专科。")
    role: str = Field(description="角色。")
    active: bool = Field(description="是否启用。")
    clinic_id: str | None = Field(default=None, description="关联诊所表格 ID。")
