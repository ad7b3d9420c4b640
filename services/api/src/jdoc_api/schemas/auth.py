"""登录请求与会话结构。"""

from pydantic import BaseModel, Field

from jdoc_api.schemas.common import BaseSchema


class LoginRequest(BaseModel):
    """账号口令登录请求。"""

    login: str = Field(min_length=1, max_length=128, description="登录名，大小写不敏感。", examples=["ivanov"])
    password: str = Field(min_length=1, max_length=256, description="登录口令。", examples=["secret"])


class AccountData(BaseSchema):
    """账号公开信息，不含口令哈希。"""

    login: str = Field(description="登录名。")
    name: str = Field(description="展示名。")
    specialty: str = Field(description="专科。")
    role: str = Field(description="角色（doctor/admin）。")
    clinic_id: str | None = Field(default=None, description="关联诊所表格 ID，为空表示不限额度。")


class LoginData(BaseSchema):
    """登录结果。"""

    token: str = Field(description="会话令牌，后续请求放入会话请求头。")
    token_type: str = Field(default="session", description="令牌类型。")
    user: AccountData = Field(description="当前账号信息。")


class SessionData(BaseSchema):
    """当前会话载荷。"""

    login: str = Field(description="登录名。")
    role: str = Field(description="角色。")
    name: str = Field(description="展示名。")
