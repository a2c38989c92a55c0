#!/usr/bin/env python3
"""
音源模块
"""
from typing import Dict

from ..config import PRIMARY_SOURCES, Settings
from ..upstream import UpstreamClient
from .base import SourceAdapter, fill_placeholders
from .free_api import FreeApiAdapter
from .parsers import SEARCH_PARSERS, parse_kuwo_search, parse_netease_search, parse_qq_search
from .tunehub import TuneHubAdapter


def build_primary_adapters(settings: Settings, client: UpstreamClient) -> Dict[str, SourceAdapter]:
    """按平台创建主 API 适配器"""
    return {
        source_id: TuneHubAdapter(
            source_id,
            client,
            settings.tunehub_base,
            SEARCH_PARSERS[source_id],
            api_key=settings.tunehub_api_key,
            quota_status_codes=settings.quota_status_codes,
            quota_keywords=settings.quota_keywords,
        )
        for source_id in PRIMARY_SOURCES
    }


__all__ = [
    'SourceAdapter', 'TuneHubAdapter', 'FreeApiAdapter',
    'fill_placeholders', 'build_primary_adapters',
    'SEARCH_PARSERS', 'parse_kuwo_search', 'parse_netease_search', 'parse_qq_search',
]
