#!/usr/bin/env python3
"""
换源调度

按优先级依次尝试主 API 的各个音源，第一个成功的结果直接返回；
主 API 额度不足时降级到备用免费 API，之后不再尝试主 API
"""

import logging
from typing import Mapping, Optional, Sequence

from .errors import QuotaExhausted, SongNotFound
from .models import ResolvedSong, SearchHit, SongRecord, UNKNOWN_ARTIST
from .sources.base import SourceAdapter

logger = logging.getLogger(__name__)


def build_record(source: str, hit: SearchHit, resolved: ResolvedSong, bitrate: str) -> SongRecord:
    return SongRecord(
        title=resolved.title or hit.title,
        artist=resolved.artist or hit.artist or UNKNOWN_ARTIST,
        source=source,
        external_id=hit.external_id,
        bitrate=bitrate,
    )


class FallbackResolver:
    """
    搜索 + 解析流水线

    Args:
        adapters: 主 API 音源适配器，按 source_id 索引
        fallback: 备用免费 API 适配器
        priority: 音源优先级
        bitrate: 请求的音质
        force_fallback: 为 True 时完全跳过主 API
    """

    def __init__(self, adapters: Mapping[str, SourceAdapter], fallback: SourceAdapter,
                 priority: Sequence[str], bitrate: str, force_fallback: bool = False):
        self.adapters = dict(adapters)
        self.fallback = fallback
        self.priority = tuple(priority)
        self.bitrate = bitrate
        self.force_fallback = force_fallback

    def adapter_for(self, source: str) -> Optional[SourceAdapter]:
        """资源代理用：按 source 找适配器（包括备用 API）"""
        if source == self.fallback.source_id:
            return self.fallback
        return self.adapters.get(source)

    def search(self, keyword: str) -> SongRecord:
        """
        搜索歌曲并返回第一个成功的结果

        Raises:
            SongNotFound: 所有音源都没有结果
            UpstreamError: 强制降级模式下备用 API 请求失败
        """
        if self.force_fallback:
            logger.info(f"强制使用备用 API: {keyword}")
            record = self._try_source(self.fallback, keyword)
            if record is None:
                raise SongNotFound(keyword)
            return record

        for source in self.priority:
            adapter = self.adapters.get(source)
            if adapter is None:
                logger.warning(f"未配置的音源: {source}")
                continue
            try:
                record = self._try_source(adapter, keyword)
            except QuotaExhausted:
                logger.warning(f"音源 {source} 额度不足，降级到备用 API")
                return self._degrade(keyword)
            except Exception as e:
                logger.warning(f"音源 {source} 搜索失败，尝试下一个: {e}")
                continue
            if record is not None:
                return record

        raise SongNotFound(keyword)

    def _try_source(self, adapter: SourceAdapter, keyword: str) -> Optional[SongRecord]:
        hit = adapter.search(keyword)
        if hit is None:
            return None
        resolved = adapter.resolve(hit.external_id, self.bitrate)
        record = build_record(adapter.source_id, hit, resolved, self.bitrate)
        logger.info(f"获取歌曲成功: source={record.source}, title={record.title}")
        return record

    def _degrade(self, keyword: str) -> SongRecord:
        try:
            record = self._try_source(self.fallback, keyword)
        except Exception as e:
            logger.error(f"备用 API 失败: {e}")
            record = None
        if record is None:
            raise SongNotFound(keyword)
        return record
