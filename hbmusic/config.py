#!/usr/bin/env python3
"""
HBMusic - 配置模块
集中管理所有配置项，从环境变量（以及 .env）读取
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- 应用信息 ---
APP_NAME = "HBMusic"

# --- 音源 ---
PRIMARY_SOURCES: Tuple[str, ...] = ('kuwo', 'netease', 'qq')
FALLBACK_SOURCE = 'kuwo-fallback'
DEFAULT_SOURCE_PRIORITY = 'kuwo,netease,qq'

# --- 音质 ---
SUPPORTED_BITRATES: Tuple[str, ...] = ('128k', '320k', 'flac')
DEFAULT_BITRATE = '320k'

# --- 上游 API ---
DEFAULT_TUNEHUB_BASE = 'https://tunehub.sayqz.com/api'
DEFAULT_FALLBACK_BASE = 'https://music-dl.sayqz.com/api'

# 对外请求统一使用的 UA
UPSTREAM_USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36'

# 浏览器 UA 黑名单关键字
DEFAULT_UA_BLACKLIST: Tuple[str, ...] = (
    # 国际主流浏览器
    'Chrome/', 'Firefox/', 'Safari/', 'Edge/', 'Opera/', 'MSIE', 'Trident/',
    # 国内浏览器
    'QQBrowser/', 'UCBrowser/', 'MiuiBrowser/', '360SE', '360EE', 'Baidu',
    'Sogou', 'Quark/', 'LBBROWSER', 'Maxthon/', '2345Explorer/',
)

# 额度耗尽判定
DEFAULT_QUOTA_STATUS_CODES = '402,403'
DEFAULT_QUOTA_KEYWORDS = 'quota,insufficient,积分,余额,额度'

_TRUE_VALUES = ('true', '1', 'yes', 'on')


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    value = env.get(key)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in _TRUE_VALUES


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    value = env.get(key)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value.strip())
    except ValueError:
        logger.warning(f"环境变量 {key}={value!r} 不是整数，使用默认值 {default}")
        return default


def _split_list(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(',') if item.strip())


def parse_source_priority(value: Optional[str]) -> Tuple[str, ...]:
    """解析音源优先级，丢弃未知音源并去重，结果为空时使用默认顺序"""
    sources = []
    for name in _split_list((value or '').lower()):
        if name not in PRIMARY_SOURCES:
            logger.warning(f"忽略未知音源: {name}")
            continue
        if name not in sources:
            sources.append(name)
    if not sources:
        return _split_list(DEFAULT_SOURCE_PRIORITY)
    return tuple(sources)


def parse_bitrate(value: Optional[str]) -> str:
    """校验音质参数，非法值回退到 320k"""
    bitrate = (value or '').strip().lower()
    if not bitrate:
        return DEFAULT_BITRATE
    if bitrate not in SUPPORTED_BITRATES:
        logger.warning(f"不支持的音质 {value!r}，使用 {DEFAULT_BITRATE}")
        return DEFAULT_BITRATE
    return bitrate


def parse_status_codes(value: str) -> Tuple[int, ...]:
    codes = []
    for item in _split_list(value):
        try:
            codes.append(int(item))
        except ValueError:
            logger.warning(f"忽略非法状态码: {item}")
    return tuple(codes)


@dataclass(frozen=True)
class Settings:
    """服务配置（只读）"""

    port: int = 3000
    host: str = '0.0.0.0'
    base_url: str = 'http://localhost:3000'
    tunehub_base: str = DEFAULT_TUNEHUB_BASE
    tunehub_api_key: str = ''
    fallback_base: str = DEFAULT_FALLBACK_BASE
    bitrate: str = DEFAULT_BITRATE
    max_retries: int = 2
    source_priority: Tuple[str, ...] = PRIMARY_SOURCES
    force_fallback: bool = False
    ua_filter_enabled: bool = True
    ua_blacklist: Tuple[str, ...] = DEFAULT_UA_BLACKLIST
    quota_status_codes: Tuple[int, ...] = (402, 403)
    quota_keywords: Tuple[str, ...] = field(default_factory=lambda: _split_list(DEFAULT_QUOTA_KEYWORDS))
    health_ttl: int = 60
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """从环境变量构建配置；未传入 environ 时先加载 .env"""
        if environ is None:
            load_dotenv()
            environ = os.environ
        env = environ

        port = _get_int(env, 'PORT', 3000)
        base_url = (env.get('BASE_URL') or f'http://localhost:{port}').rstrip('/')
        blacklist = _split_list(env.get('UA_BLACKLIST', '')) or DEFAULT_UA_BLACKLIST

        return cls(
            port=port,
            host=env.get('HOST') or '0.0.0.0',
            base_url=base_url,
            tunehub_base=(env.get('TUNEHUB_BASE') or DEFAULT_TUNEHUB_BASE).rstrip('/'),
            tunehub_api_key=env.get('TUNEHUB_API_KEY', ''),
            fallback_base=(env.get('FALLBACK_BASE') or DEFAULT_FALLBACK_BASE).rstrip('/'),
            bitrate=parse_bitrate(env.get('BITRATE')),
            max_retries=max(0, _get_int(env, 'MAX_RETRIES', 2)),
            source_priority=parse_source_priority(env.get('SOURCE_PRIORITY', DEFAULT_SOURCE_PRIORITY)),
            force_fallback=_get_bool(env, 'FORCE_FALLBACK', False),
            # 只有显式设置为 false 才关闭
            ua_filter_enabled=(env.get('UA_FILTER', '').strip().lower() != 'false'),
            ua_blacklist=blacklist,
            quota_status_codes=parse_status_codes(env.get('QUOTA_STATUS_CODES', DEFAULT_QUOTA_STATUS_CODES)),
            quota_keywords=tuple(k.lower() for k in _split_list(env.get('QUOTA_KEYWORDS', DEFAULT_QUOTA_KEYWORDS))),
            health_ttl=max(1, _get_int(env, 'HEALTH_TTL', 60)),
            log_level=(env.get('LOG_LEVEL') or 'INFO').upper(),
        )


def setup_logging(level: str = 'INFO') -> logging.Logger:
    """配置日志"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    return logging.getLogger('hbmusic')
