#!/usr/bin/env python3
"""
上游健康状态

状态缓存在 HealthCache 中，过期后由下一个请求触发刷新
"""

import time
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)

STATE_OK = 'ok'
STATE_DEGRADED = 'degraded'
STATE_ERROR = 'error'

PROBE_TIMEOUT = 5  # 健康检查超时（秒）


@dataclass(frozen=True)
class HealthStatus:
    state: str
    checked_at: float

    def to_dict(self) -> dict:
        return {
            'state': self.state,
            'checked_at': datetime.fromtimestamp(self.checked_at, tz=timezone.utc).isoformat(),
        }


class HealthCache:
    """带过期时间的单值缓存"""

    def __init__(self, probe: Callable[[], str], ttl: int = 60,
                 clock: Callable[[], float] = time.time):
        self.probe = probe
        self.ttl = ttl  # 缓存有效期（秒）
        self.clock = clock
        self._value: Optional[HealthStatus] = None
        self._expires_at = 0.0
        self.lock = threading.Lock()

    def get(self) -> HealthStatus:
        value = self._value
        if value is not None and self.clock() < self._expires_at:
            return value
        return self.refresh_if_expired()

    def refresh_if_expired(self) -> HealthStatus:
        with self.lock:
            now = self.clock()
            # 等锁期间可能已被其他请求刷新
            if self._value is not None and now < self._expires_at:
                return self._value
            try:
                state = self.probe()
            except Exception as e:
                logger.error(f"健康检查异常: {e}")
                state = STATE_ERROR
            self._value = HealthStatus(state=state, checked_at=now)
            self._expires_at = now + self.ttl
            logger.info(f"上游健康状态: {state}")
            return self._value


class UpstreamProbe:
    """探测主 API 和备用 API 是否可达"""

    def __init__(self, session: requests.Session, primary_base: str, fallback_base: str,
                 force_fallback: bool = False, timeout: float = PROBE_TIMEOUT):
        self.session = session
        self.primary_base = primary_base
        self.fallback_base = fallback_base
        self.force_fallback = force_fallback
        self.timeout = timeout

    def _reachable(self, url: str) -> bool:
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.close()
            return resp.status_code < 500
        except requests.RequestException as e:
            logger.warning(f"健康检查失败 {url}: {e}")
            return False

    def __call__(self) -> str:
        if self.force_fallback:
            return STATE_OK if self._reachable(self.fallback_base) else STATE_ERROR
        if self._reachable(self.primary_base):
            return STATE_OK
        if self._reachable(self.fallback_base):
            return STATE_DEGRADED
        return STATE_ERROR
