#!/usr/bin/env python3
"""
客户端 UA 过滤

主接口只给微信内置浏览器和非浏览器 HTTP 客户端使用，普通浏览器返回提示页
"""

import logging
from typing import Iterable, Sequence

from flask import Flask, render_template, request

logger = logging.getLogger(__name__)

# 需要验证的路由（主接口）
PROTECTED_ROUTES = ('/',)
WECHAT_MARKER = 'MicroMessenger'


def is_blocked_agent(user_agent: str, blacklist: Iterable[str]) -> bool:
    """微信放行，命中浏览器关键字的拒绝，其他客户端放行"""
    if WECHAT_MARKER in user_agent:
        return False
    return any(keyword in user_agent for keyword in blacklist)


def register_ua_filter(app: Flask, blacklist: Sequence[str]):
    blacklist = tuple(blacklist)

    @app.before_request
    def filter_user_agent():
        if request.path not in PROTECTED_ROUTES:
            return None
        ua = request.headers.get('User-Agent', '')
        if not is_blocked_agent(ua, blacklist):
            return None
        logger.warning(f"浏览器请求被拒绝: {ua[:100]}")
        return render_template('blocked.html'), 403
