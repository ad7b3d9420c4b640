"""应用运行配置。"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """接口服务共享配置。"""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="JD_", extra="ignore")

    app_name: str = Field(default="Clinical Notes Assistant", description="应用名称。")
    app_env: str = Field(default="dev", description="运行环境标识。")
    app_debug: bool = Field(default=False, description="是否开启调试模式。")
    api_prefix: str = Field(default="/api", description="统一接口前缀。")
    log_level: str = Field(default="INFO", description="日志级别。")

    session_secret: str = Field(default="change-me-in-prod", description="会话令牌签名密钥。")
    session_algorithm: str = Field(default="HS256", description="会话令牌签名算法。")
    session_header: str = Field(default="x-session-token", description="携带会话令牌的请求头。")
    session_ttl_seconds: int | None = Field(
        default=None,
        description="会话令牌有效期（秒），为空表示不过期。",
    )

    password_bcrypt_rounds: int = Field(default=12, ge=4, le=31, description="bcrypt 成本因子。")

    login_rate_limit_max_attempts: int = Field(default=5, ge=1, description="登录窗口内最大尝试次数。")
    login_rate_limit_window_seconds: int = Field(default=900, ge=1, description="登录限流窗口（秒）。")
    redis_url: str | None = Field(default=None, description="Redis 连接地址，配置后限流计数跨实例共享。")
    rate_limit_key_prefix: str = Field(default="ratelimit:", description="限流计数键前缀。")
    trusted_proxies: list[str] = Field(
        default_factory=list,
        description="可信反向代理地址，仅来自这些地址的 X-Forwarded-For 会被采信。",
    )

    row_store_backend: str = Field(default="memory", description="行存储后端（memory/google_sheets）。")
    main_spreadsheet_id: str = Field(default="main", description="主表格 ID，存放账号与病历记录。")
    users_sheet: str = Field(default="Users", description="账号工作表名称。")
    settings_sheet: str = Field(default="Settings", description="诊所额度工作表名称。")
    consultations_sheet: str = Field(default="Consultations", description="病历记录工作表名称。")
    google_client_email: str | None = Field(default=None, description="服务账号邮箱。")
    google_private_key: str | None = Field(default=None, description="服务账号私钥（PEM）。")

    openai_api_key: str | None = Field(default=None, description="语音转写与分析服务密钥。")
    openai_transcription_model: str = Field(default="whisper-1", description="语音转写模型。")
    openai_analysis_model: str = Field(default="gpt-4o", description="结构化分析模型。")
    transcription_language: str = Field(default="ru", description="转写语言。")
    analysis_timeout_seconds: float = Field(default=60.0, gt=0, description="转写+分析总超时（秒）。")
    max_audio_bytes: int = Field(default=25 * 1024 * 1024, description="上传音频最大字节数。")

    bootstrap_admin_login: str | None = Field(default=None, description="首次启动自动创建的管理员账号。")
    bootstrap_admin_password: str | None = Field(default=None, description="首个管理员初始密码。")
    bootstrap_admin_name: str = Field(default="Administrator", description="首个管理员展示名。")
    bootstrap_admin_specialty: str = Field(default="", description="首个管理员专科。")

    @field_validator("row_store_backend")
    @classmethod
    def normalize_backend(cls, value: str) -> str:
        """规范化行存储后端名称。"""
        normalized = value.strip().lower()
        if normalized not in {"memory", "google_sheets"}:
            raise ValueError("row_store_backend must be 'memory' or 'google_sheets'")
        return normalized

    @field_validator("session_ttl_seconds")
    @classmethod
    def normalize_ttl(cls, value: int | None) -> int | None:
        """非正数视为不过期。"""
        if value is None or value <= 0:
            return None
        return value

    @property
    def google_private_key_pem(self) -> str | None:
        """还原环境变量中被转义的换行符。"""
        if not self.google_private_key:
            return None
        return self.google_private_key.replace("\\n", "\n")


@lru_cache
def get_settings() -> Settings:
    """返回缓存后的配置单例。"""
    return Settings()
