"""病历保存、查询与分析结构。"""

from typing import Any

from pydantic import BaseModel, Field

from jdoc_api.schemas.common import BaseSchema


class ConsultationSaveRequest(BaseModel):
    """保存病历请求体，字段通常来自分析结果并经医生确认。"""

    patient_name: str = Field(min_length=1, max_length=512, description="患者姓名。")
    dob: str = Field(default="", max_length=64, description="出生日期。")
    visit_date: str = Field(default="", max_length=64, description="接诊日期。")
    complaints: str = Field(default="", description="主诉。")
    anamnesis: str = Field(default="", description="病史。")
    diagnosis: str = Field(default="", description="诊断。")
    treatment: str = Field(default="", description="治疗。")
    recommendations: str = Field(default="", description="医嘱。")
    doctor_name: str = Field(default="", max_length=256, description="医生姓名，留空取当前会话展示名。")
    doctor_specialty: str = Field(default="", max_length=256, description="医生专科。")
    procedures: dict[str, int] = Field(default_factory=dict, description="各理疗项目疗程次数。")


class ConsultationData(BaseSchema):
    """病历行。"""

    row_number: int | None = Field(default=None, description="所在表格行号，删除时使用。")
    patient_name: str
    dob: str
    visit_date: str
    complaints: str
    anamnesis: str
    diagnosis: str
    treatment: str
    recommendations: str
    doctor_name: str
    doctor_specialty: str
    saved_at: str = Field(description="保存时间（UTC ISO-8601）。")
    procedures: dict[str, int] = Field(default_factory=dict)


class ConsultationSaveData(BaseSchema):
    """保存结果。"""

    saved: bool = Field(description="是否已写入。")
    saved_at: str = Field(description="保存时间。")
    remaining_credits: int = Field(description="扣减后的剩余额度，不限额度时为 -1。")
    unlimited: bool = Field(description="是否不限额度。")


class AnalysisData(BaseSchema):
    """录音分析结果。"""

    text: str = Field(description="转写文本。")
    analysis: dict[str, Any] = Field(description="抽取出的病历字段。")
