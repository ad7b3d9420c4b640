"""额度查询结构。"""

from pydantic import Field

from jdoc_api.schemas.common import BaseSchema


class CreditsData(BaseSchema):
    """诊所额度快照；未关联诊所时为不限额度哨兵值。"""

    clinic_name: str | None = Field(default=None, description="诊所名称。")
    total_credits: int = Field(description="总额度，不限额度时为 -1。")
    used_credits: int = Field(description="已用额度。")
    remaining_credits: int = Field(description="剩余额度，不限额度时为 -1。")
    unlimited: bool = Field(description="是否不限额度。")
