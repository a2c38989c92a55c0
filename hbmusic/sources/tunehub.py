#!/usr/bin/env python3
"""
主 API（TuneHub）音源适配器

搜索分两步：
1. 获取平台的搜索方法描述（url/method/params/headers/body，含 {{keyword}} 等占位符）
2. 替换占位符后直接请求平台接口，再用对应平台的解析器取第一条结果

解析统一走 /v1/parse，需要 API Key，额度不足时抛出 QuotaExhausted
"""

import logging
from typing import Any, Callable, Optional, Sequence

import requests

from ..errors import QuotaExhausted, SongNotFound, UpstreamError
from ..models import ResolvedSong, SearchHit
from ..upstream import UpstreamClient
from .base import SourceAdapter, fill_placeholders, first_of, read_json

logger = logging.getLogger(__name__)

SUCCESS_CODES = (0, 200)
MESSAGE_FIELDS = ('message', 'msg', 'error')


class TuneHubAdapter(SourceAdapter):
    """kuwo / netease / qq 在主 API 上的适配"""

    def __init__(self, source_id: str, client: UpstreamClient, base_url: str,
                 parser: Callable[[Any], Optional[SearchHit]], api_key: str = '',
                 quota_status_codes: Sequence[int] = (402, 403),
                 quota_keywords: Sequence[str] = ()):
        super().__init__(client)
        self.source_id = source_id
        self.platform = source_id
        self.base_url = base_url.rstrip('/')
        self.parser = parser
        self.api_key = api_key
        self.quota_status_codes = tuple(quota_status_codes)
        self.quota_keywords = tuple(k.lower() for k in quota_keywords)

    # ---------- 额度判定 ----------

    def is_quota_signal(self, status_code: int, payload: Any) -> bool:
        if status_code in self.quota_status_codes:
            return True
        if not isinstance(payload, dict):
            return False
        # 成功的响应不看 message
        if status_code < 400 and payload.get('code', 200) in SUCCESS_CODES:
            return False
        message = ' '.join(str(payload.get(f, '')) for f in MESSAGE_FIELDS).lower()
        return any(keyword in message for keyword in self.quota_keywords)

    def _check_response(self, resp: requests.Response, stage: str) -> Any:
        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if self.is_quota_signal(resp.status_code, payload):
            logger.warning(f"[{self.source_id}] {stage}: 主 API 额度不足 (HTTP {resp.status_code})")
            raise QuotaExhausted(upstream_status=resp.status_code)
        if resp.status_code >= 400:
            raise UpstreamError(f'{stage}失败: HTTP {resp.status_code}', upstream_status=resp.status_code)
        if not isinstance(payload, dict):
            raise UpstreamError(f'{stage}响应不是合法 JSON', upstream_status=resp.status_code)
        if payload.get('code', 200) not in SUCCESS_CODES:
            message = first_of(payload, MESSAGE_FIELDS, default=str(payload.get('code')))
            raise UpstreamError(f'{stage}失败: {message}')
        return payload

    def _auth_headers(self) -> dict:
        return {'X-API-Key': self.api_key} if self.api_key else {}

    # ---------- 搜索 ----------

    def fetch_search_method(self) -> dict:
        """第一步：获取平台搜索方法描述"""
        url = f"{self.base_url}/v1/methods/{self.platform}/search"
        resp = self.client.get(url, headers=self._auth_headers())
        payload = self._check_response(resp, '获取搜索方法')

        descriptor = payload.get('data', payload)
        if not isinstance(descriptor, dict) or not descriptor.get('url'):
            raise UpstreamError('搜索方法描述缺少 url')
        return descriptor

    def execute_search(self, descriptor: dict, keyword: str, page: int = 1, limit: int = 1) -> Any:
        """第二步：按描述请求平台搜索接口，返回原始响应"""
        values = {'keyword': keyword, 'page': page, 'limit': limit}
        method = str(descriptor.get('method') or 'GET').upper()

        kwargs = {}
        if descriptor.get('params'):
            kwargs['params'] = fill_placeholders(descriptor['params'], values)
        if descriptor.get('headers'):
            kwargs['headers'] = fill_placeholders(descriptor['headers'], values)
        body = descriptor.get('body')
        if body is not None and method != 'GET':
            body = fill_placeholders(body, values)
            if isinstance(body, (dict, list)):
                kwargs['json'] = body
            else:
                kwargs['data'] = body

        resp = self.client.call(method, fill_placeholders(descriptor['url'], values), **kwargs)
        if resp.status_code >= 400:
            raise UpstreamError(f'平台搜索失败: HTTP {resp.status_code}', upstream_status=resp.status_code)
        return read_json(resp, '平台搜索')

    def search(self, keyword: str) -> Optional[SearchHit]:
        descriptor = self.fetch_search_method()
        payload = self.execute_search(descriptor, keyword)
        hit = self.parser(payload)
        if hit is None:
            logger.info(f"[{self.source_id}] 未搜索到: {keyword}")
        return hit

    # ---------- 解析 ----------

    def resolve(self, external_id: str, bitrate: str) -> ResolvedSong:
        resp = self.client.post(
            f"{self.base_url}/v1/parse",
            json={'platform': self.platform, 'ids': external_id, 'quality': bitrate},
            headers=self._auth_headers(),
        )
        payload = self._check_response(resp, '解析歌曲')

        item = self._pick_item(payload.get('data'), external_id)
        if item is None or item.get('success') is False or not item.get('url'):
            raise SongNotFound(external_id, message=f'无法解析歌曲: {self.source_id}/{external_id}')

        info = item.get('info') if isinstance(item.get('info'), dict) else {}
        return ResolvedSong(
            stream_url=str(item['url']),
            cover_url=first_of(item, ('cover', 'pic')) or first_of(info, ('cover', 'pic')),
            lyric=first_of(item, ('lyrics', 'lrc', 'lyric')),
            title=first_of(info, ('name',)) or first_of(item, ('name', 'title')),
            artist=first_of(info, ('artist',)) or first_of(item, ('artist',)),
        )

    @staticmethod
    def _pick_item(data: Any, external_id: str) -> Optional[dict]:
        if isinstance(data, dict):
            data = data.get('data', [data])
        if not isinstance(data, list):
            return None
        items = [d for d in data if isinstance(d, dict)]
        for item in items:
            if str(item.get('id', '')) == str(external_id):
                return item
        return items[0] if items else None
