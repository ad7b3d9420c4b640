"""路由模块导出集合。"""

from . import analysis, auth, consultations, credits, health, users

__all__ = [
    "analysis",
    "auth",
    "consultations",
    "credits",
    "health",
    "users",
]
