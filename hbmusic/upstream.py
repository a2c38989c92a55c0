#!/usr/bin/env python3
"""
上游 HTTP 客户端

所有对外请求都经过这里：统一 UA，网络错误和 5xx 按线性退避重试
"""

import time
import logging
from typing import Callable, Optional

import requests

from .config import UPSTREAM_USER_AGENT
from .errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15
BACKOFF_STEP = 0.2  # 第 n 次重试前等待 0.2 * n 秒


def create_session() -> requests.Session:
    """创建共享的 HTTP Session"""
    session = requests.Session()
    session.headers.update({
        'User-Agent': UPSTREAM_USER_AGENT,
        'Accept': 'application/json, */*',
        'Accept-Language': 'zh-CN,zh;q=0.9',
    })
    return session


class UpstreamClient:
    """带重试的上游请求封装"""

    def __init__(self, session: Optional[requests.Session] = None, max_retries: int = 2,
                 backoff: float = BACKOFF_STEP, timeout: float = DEFAULT_TIMEOUT,
                 sleep: Callable[[float], None] = time.sleep):
        self.session = session or create_session()
        self.max_retries = max(0, max_retries)
        self.backoff = backoff
        self.timeout = timeout
        self._sleep = sleep

    def call(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        发起请求

        网络错误或 HTTP 状态码 >= 500 时最多再重试 max_retries 次，
        4xx 原样返回由调用方判断。重试耗尽后抛出 UpstreamError

        Args:
            method: HTTP 方法
            url: 请求地址
            **kwargs: 透传给 requests 的参数（params/json/headers/stream 等）
        """
        # 固定 UA 最后写入，调用方传入的 User-Agent 不生效
        headers = {k: v for k, v in (kwargs.pop('headers', None) or {}).items()
                   if k.lower() != 'user-agent'}
        headers['User-Agent'] = UPSTREAM_USER_AGENT
        kwargs.setdefault('timeout', self.timeout)

        last_error: Optional[UpstreamError] = None
        attempts = self.max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                resp = self.session.request(method, url, headers=headers, **kwargs)
            except requests.RequestException as e:
                logger.warning(f"请求失败 {attempt}/{attempts}: {method} {url} - {e}")
                last_error = UpstreamError(f'上游请求失败: {e}')
                last_error.__cause__ = e
            else:
                if resp.status_code < 500:
                    return resp
                logger.warning(f"上游 5xx {attempt}/{attempts}: {method} {url} - HTTP {resp.status_code}")
                last_error = UpstreamError(f'Server Error: {resp.status_code}', upstream_status=resp.status_code)
                resp.close()

            if attempt < attempts:
                self._sleep(self.backoff * attempt)

        logger.error(f"重试耗尽: {method} {url}")
        raise last_error

    def get(self, url: str, **kwargs) -> requests.Response:
        return self.call('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        return self.call('POST', url, **kwargs)
