#!/usr/bin/env python3
"""
音源适配器基类与通用工具
"""

import re
import logging
from typing import Any, Iterable, Mapping, Optional

import requests

from ..errors import UpstreamError
from ..models import ResolvedSong, SearchHit
from ..upstream import UpstreamClient

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r'\{\{\s*(\w+)\s*\}\}')


def fill_placeholders(value: Any, values: Mapping[str, Any]) -> Any:
    """
    替换 {{keyword}} / {{page}} / {{limit}} 占位符

    递归处理 dict/list 中的字符串；未识别的占位符替换为空字符串
    """
    if isinstance(value, str):
        return _PLACEHOLDER.sub(lambda m: str(values.get(m.group(1), '')), value)
    if isinstance(value, dict):
        return {k: fill_placeholders(v, values) for k, v in value.items()}
    if isinstance(value, list):
        return [fill_placeholders(v, values) for v in value]
    return value


def read_json(resp: requests.Response, stage: str) -> Any:
    """读取 JSON 响应，格式错误视为上游失败"""
    try:
        return resp.json()
    except ValueError:
        raise UpstreamError(f'{stage}响应不是合法 JSON', upstream_status=resp.status_code)


def first_of(mapping: Mapping, keys: Iterable[str], default: str = '') -> str:
    """按顺序取第一个非空字段"""
    for key in keys:
        value = mapping.get(key)
        if value not in (None, ''):
            return str(value)
    return default


class SourceAdapter:
    """
    音源适配器

    search 返回第一条命中的结果或 None（未找到），
    resolve 根据 external_id 返回可播放信息，失败时抛出 HBMusicError 子类
    """

    source_id = ''
    platform = ''

    def __init__(self, client: UpstreamClient):
        self.client = client

    def search(self, keyword: str) -> Optional[SearchHit]:
        raise NotImplementedError

    def resolve(self, external_id: str, bitrate: str) -> ResolvedSong:
        raise NotImplementedError

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.source_id}>"
