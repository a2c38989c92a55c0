#!/usr/bin/env python3
"""
备用免费 API（kuwo-fallback）

不需要 API Key，固定使用酷我音源。播放、封面、歌词地址都是确定的，
由上游重定向到真实资源
"""

import logging
from typing import Optional
from urllib.parse import urlencode

from ..config import FALLBACK_SOURCE
from ..errors import UpstreamError
from ..models import ResolvedSong, SearchHit
from ..upstream import UpstreamClient
from .base import SourceAdapter, first_of, read_json

logger = logging.getLogger(__name__)


class FreeApiAdapter(SourceAdapter):

    source_id = FALLBACK_SOURCE
    platform = 'kuwo'

    def __init__(self, client: UpstreamClient, base_url: str):
        super().__init__(client)
        self.base_url = base_url.rstrip('/')

    def asset_url(self, asset_type: str, external_id: str, **extra) -> str:
        params = {'source': self.platform, 'id': external_id, 'type': asset_type}
        params.update(extra)
        return f"{self.base_url}?{urlencode(params)}"

    def _get_json(self, params: dict, stage: str) -> dict:
        resp = self.client.get(self.base_url, params=params)
        if resp.status_code >= 400:
            raise UpstreamError(f'{stage}失败: {resp.status_code}', upstream_status=resp.status_code)
        payload = read_json(resp, stage)
        if not isinstance(payload, dict):
            raise UpstreamError(f'{stage}响应格式错误')
        return payload

    def search(self, keyword: str) -> Optional[SearchHit]:
        payload = self._get_json(
            {'type': 'search', 'source': self.platform, 'keyword': keyword, 'limit': 1}, '搜索')
        data = payload.get('data')
        results = data.get('results') if isinstance(data, dict) else None
        if payload.get('code') != 200 or not isinstance(results, list) or not results:
            return None

        song = results[0]
        if not isinstance(song, dict) or song.get('id') in (None, ''):
            return None
        return SearchHit(
            external_id=str(song['id']),
            title=first_of(song, ('name',)),
            artist=first_of(song, ('artist',)),
        )

    def resolve(self, external_id: str, bitrate: str) -> ResolvedSong:
        payload = self._get_json(
            {'type': 'info', 'source': self.platform, 'id': external_id, 'br': bitrate}, '详情')
        info = payload.get('data')
        if payload.get('code') != 200 or not isinstance(info, dict):
            raise UpstreamError('获取详情失败')

        return ResolvedSong(
            stream_url=self.asset_url('url', external_id, br=bitrate),
            cover_url=self.asset_url('pic', external_id),
            lyric=self.asset_url('lrc', external_id),
            title=first_of(info, ('name',)),
            artist=first_of(info, ('artist',)),
        )
