"""本地账号口令服务。"""

from __future__ import annotations

import hashlib
import hmac
import logging

import bcrypt
from starlette.concurrency import run_in_threadpool

from jdoc_api.core.config import get_settings
from jdoc_api.core.errors import UpstreamUnavailableError
from jdoc_api.services.accounts import AccountNotFoundError, AccountRepository

logger = logging.getLogger(__name__)

# bcrypt 哈希统一以 $2 开头（$2a/$2b/$2y），其余格式视为历史 SHA-256 摘要。
BCRYPT_PREFIX = "$2"
# bcrypt 只处理前 72 字节。
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """使用 bcrypt 生成口令哈希。"""
    secret = password.encode("utf-8")
    if len(secret) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must not exceed {MAX_PASSWORD_BYTES} bytes")
    rounds = get_settings().password_bcrypt_rounds
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def legacy_digest(password: str) -> str:
    """历史账号使用的无盐 SHA-256 十六进制摘要。"""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def is_legacy_hash(stored_hash: str) -> bool:
    """判断是否为待迁移的历史摘要。"""
    return not stored_hash.startswith(BCRYPT_PREFIX)


def verify_password(password: str, stored_hash: str) -> bool:
    """校验口令是否匹配，兼容历史摘要。"""
    if not stored_hash:
        return False
    if not is_legacy_hash(stored_hash):
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
        except ValueError:
            # 哈希串损坏或口令超长。
            return False
    return hmac.compare_digest(legacy_digest(password).encode("utf-8"), stored_hash.encode("utf-8"))


async def migrate_legacy_password(accounts: AccountRepository, login: str, password: str) -> None:
    """登录成功后将历史摘要升级为 bcrypt，失败只记录日志，不影响登录结果。"""
    try:
        new_hash = await run_in_threadpool(hash_password, password)
        await accounts.update_password_hash(login, new_hash)
    except (UpstreamUnavailableError, AccountNotFoundError, ValueError):
        logger.exception("legacy password migration failed login=%s", login)
        return
    except Exception:
        # 后台任务没有调用方接收异常，未预期错误同样只记录。
        logger.exception("legacy password migration crashed login=%s", login)
        return
    logger.info("legacy password migrated to bcrypt login=%s", login)
