#!/usr/bin/env python3
"""
数据模型
"""

from dataclasses import dataclass
from urllib.parse import urlencode

UNKNOWN_ARTIST = '未知歌手'

# 详情页链接模板，只依赖 (source, id)
DETAIL_LINK_TEMPLATES = {
    'kuwo': 'https://www.kuwo.cn/play_detail/{id}',
    'netease': 'https://music.163.com/#/song?id={id}',
    'qq': 'https://y.qq.com/n/ryqq/songDetail/{id}',
    'kuwo-fallback': 'https://www.kuwo.cn/play_detail/{id}',
}


def detail_link(source: str, external_id: str) -> str:
    """生成详情页链接，未知音源返回空字符串"""
    template = DETAIL_LINK_TEMPLATES.get(source)
    if not template:
        return ''
    return template.format(id=external_id)


def build_proxy_url(base_url: str, path: str, **params) -> str:
    query = urlencode([(k, v) for k, v in params.items() if v is not None])
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}?{query}"


@dataclass(frozen=True)
class SearchHit:
    """搜索阶段拿到的第一条结果"""

    external_id: str
    title: str = ''
    artist: str = ''


@dataclass(frozen=True)
class ResolvedSong:
    """
    解析结果

    lyric 可能是歌词地址（http/https），也可能直接是 LRC 文本
    """

    stream_url: str
    cover_url: str = ''
    lyric: str = ''
    title: str = ''
    artist: str = ''

    @property
    def lyric_is_url(self) -> bool:
        return self.lyric.startswith(('http://', 'https://'))


@dataclass(frozen=True)
class SongRecord:
    """一次搜索的最终结果，source 与 external_id 必须成对使用"""

    title: str
    artist: str
    source: str
    external_id: str
    bitrate: str

    @property
    def detail_link(self) -> str:
        return detail_link(self.source, self.external_id)

    def cover_url(self, base_url: str) -> str:
        return build_proxy_url(base_url, '/cover', source=self.source, id=self.external_id)

    def stream_url(self, base_url: str) -> str:
        return build_proxy_url(base_url, '/stream', source=self.source, id=self.external_id, br=self.bitrate)

    def lyric_url(self, base_url: str) -> str:
        return build_proxy_url(base_url, '/lyric', source=self.source, id=self.external_id)

    def to_payload(self, base_url: str) -> dict:
        """转换为点歌插件需要的响应格式"""
        return {
            'code': 200,
            'title': self.title,
            'singer': self.artist or UNKNOWN_ARTIST,
            'cover': self.cover_url(base_url),
            'link': self.detail_link,
            'music_url': self.stream_url(base_url),
            'lyric': self.lyric_url(base_url),
            'source': self.source,
        }
