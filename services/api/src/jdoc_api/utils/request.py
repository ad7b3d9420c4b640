"""请求信息提取工具。"""

from fastapi import Request

from jdoc_api.core.config import get_settings


def client_ip(request: Request) -> str:
    """提取客户端 IP。

    默认使用连接对端地址；仅当对端是配置的可信代理时才读取 X-Forwarded-For，
    从右向左跳过可信代理，取第一个非可信地址。
    """
    peer = request.client.host if request.client else "unknown"
    trusted = set(get_settings().trusted_proxies)
    if peer not in trusted:
        return peer
    forwarded = request.headers.get("x-forwarded-for", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return peer
