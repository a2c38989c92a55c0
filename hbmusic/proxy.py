#!/usr/bin/env python3
"""
资源代理

按 (source, id) 重新解析出真实地址，再把音频/封面/歌词原样转发给调用方。
不缓存解析结果，也不在服务端缓冲整个文件
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Optional

import requests

from .errors import HBMusicError, SongNotFound, UpstreamError, ValidationError
from .upstream import UpstreamClient

logger = logging.getLogger(__name__)

ASSET_KINDS = ('audio', 'cover', 'lyric')
CHUNK_SIZE = 8192

# 各平台需要的 Referer
PLATFORM_REFERERS = {
    'netease': 'https://music.163.com/',
    'qq': 'https://y.qq.com/',
    'kuwo': 'https://www.kuwo.cn/',
    'kuwo-fallback': 'https://www.kuwo.cn/',
}

DEFAULT_CONTENT_TYPES = {
    'audio': 'audio/mpeg',
    'cover': 'image/jpeg',
}
LYRIC_CONTENT_TYPE = 'text/plain; charset=utf-8'
ASSET_CACHE_CONTROL = 'public, max-age=86400'

# 原样转发的响应头
MIRRORED_HEADERS = ('Content-Type', 'Content-Length', 'Content-Range', 'Accept-Ranges')


@dataclass
class ProxiedAsset:
    """转发给调用方的资源"""

    status: int
    headers: Dict[str, str]
    chunks: Iterator[bytes] = field(repr=False)


def _relay(resp: requests.Response) -> Iterator[bytes]:
    try:
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            if chunk:
                yield chunk
    finally:
        resp.close()


class ResourceProxy:
    """
    Args:
        adapter_for: 根据 source 返回适配器（未知音源返回 None）
        client: 上游客户端，只在建立连接时重试
        bitrate: 默认音质
    """

    def __init__(self, adapter_for: Callable, client: UpstreamClient, bitrate: str):
        self.adapter_for = adapter_for
        self.client = client
        self.bitrate = bitrate

    def open(self, source: str, external_id: str, kind: str,
             range_header: Optional[str] = None, bitrate: Optional[str] = None) -> ProxiedAsset:
        if kind not in ASSET_KINDS:
            raise ValidationError('type', f'不支持的资源类型: {kind}')
        adapter = self.adapter_for(source)
        if adapter is None:
            raise ValidationError('source', f'不支持的音源: {source}')

        try:
            resolved = adapter.resolve(external_id, bitrate or self.bitrate)
        except SongNotFound:
            raise
        except HBMusicError as e:
            logger.error(f"重新解析失败 {source}/{external_id}: {e}")
            raise UpstreamError(f'资源解析失败: {e.message}')
        except Exception as e:
            logger.exception(f"重新解析异常 {source}/{external_id}: {e}")
            raise UpstreamError('资源解析失败')

        if kind == 'audio':
            target = resolved.stream_url
        elif kind == 'cover':
            target = resolved.cover_url
        else:
            if resolved.lyric and not resolved.lyric_is_url:
                return self._inline_lyric(resolved.lyric)
            target = resolved.lyric

        if not target:
            raise SongNotFound(external_id, message=f'资源不存在: {source}/{external_id}')

        return self._forward(source, target, kind, range_header)

    def _forward(self, source: str, url: str, kind: str, range_header: Optional[str]) -> ProxiedAsset:
        headers = {}
        if range_header:
            headers['Range'] = range_header
        referer = PLATFORM_REFERERS.get(source)
        if referer:
            headers['Referer'] = referer

        resp = self.client.get(url, headers=headers, stream=True, allow_redirects=True)
        if resp.status_code >= 400 and resp.status_code != 416:
            resp.close()
            logger.warning(f"资源请求失败: {source} {kind} HTTP {resp.status_code}")
            raise UpstreamError(f'资源获取失败: HTTP {resp.status_code}', upstream_status=resp.status_code)

        out = {}
        for name in MIRRORED_HEADERS:
            value = resp.headers.get(name)
            if value:
                out[name] = value
        # iter_content 会解压 gzip/deflate，上游长度与实际转发的字节数不一致
        if resp.headers.get('Content-Encoding'):
            out.pop('Content-Length', None)

        if kind == 'lyric':
            out['Content-Type'] = LYRIC_CONTENT_TYPE
        else:
            out.setdefault('Content-Type', DEFAULT_CONTENT_TYPES[kind])
        if kind == 'audio':
            out.setdefault('Accept-Ranges', 'bytes')
        else:
            out['Cache-Control'] = ASSET_CACHE_CONTROL

        return ProxiedAsset(status=resp.status_code, headers=out, chunks=_relay(resp))

    @staticmethod
    def _inline_lyric(text: str) -> ProxiedAsset:
        body = text.encode('utf-8')
        return ProxiedAsset(
            status=200,
            headers={
                'Content-Type': LYRIC_CONTENT_TYPE,
                'Content-Length': str(len(body)),
                'Cache-Control': ASSET_CACHE_CONTROL,
            },
            chunks=iter([body]),
        )
