#!/usr/bin/env python3
"""
各平台搜索结果解析

每个平台的响应结构不同，这里统一解析成 SearchHit。
字段缺失或结构不对一律返回 None，不抛异常
"""

import re
from typing import Any, Callable, Dict, List, Optional

from ..models import SearchHit
from .base import first_of

# 酷我的 MUSICRID 形如 MUSIC_12345
_KUWO_RID = re.compile(r'MUSIC_(\d+)')


def _first_dict(items: Any) -> Optional[dict]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def _join_names(artists: Any) -> str:
    if not isinstance(artists, list):
        return ''
    names = [str(a.get('name', '')) for a in artists if isinstance(a, dict) and a.get('name')]
    return '/'.join(names)


def _kuwo_abslist(payload: dict) -> List:
    if isinstance(payload.get('abslist'), list):
        return payload['abslist']
    # 综合搜索接口：content[].musicpage.abslist
    for block in payload.get('content') or []:
        if not isinstance(block, dict):
            continue
        page = block.get('musicpage')
        if isinstance(page, dict) and isinstance(page.get('abslist'), list):
            return page['abslist']
    return []


def parse_kuwo_search(payload: Any) -> Optional[SearchHit]:
    if not isinstance(payload, dict):
        return None
    song = _first_dict(_kuwo_abslist(payload))
    if song is None:
        return None

    match = _KUWO_RID.search(str(song.get('MUSICRID') or ''))
    if match:
        song_id = match.group(1)
    else:
        song_id = first_of(song, ('DC_TARGETID', 'rid', 'id')).strip()
    if not song_id:
        return None

    return SearchHit(
        external_id=song_id,
        title=first_of(song, ('SONGNAME', 'NAME', 'name')),
        artist=first_of(song, ('ARTIST', 'artist')).replace('&', '/'),
    )


def parse_netease_search(payload: Any) -> Optional[SearchHit]:
    if not isinstance(payload, dict) or not isinstance(payload.get('result'), dict):
        return None
    song = _first_dict(payload['result'].get('songs'))
    if song is None or song.get('id') in (None, ''):
        return None

    artists = song.get('artists') if 'artists' in song else song.get('ar')
    return SearchHit(
        external_id=str(song['id']),
        title=first_of(song, ('name',)),
        artist=_join_names(artists),
    )


def _qq_song_list(payload: dict) -> List:
    data = payload.get('data')
    if isinstance(data, dict) and isinstance(data.get('song'), dict):
        songs = data['song'].get('list')
        if isinstance(songs, list):
            return songs
    # musicu.fcg 风格：req / req_0 / req_1 ... -> data.body.song.list
    for key, block in payload.items():
        if not key.startswith('req') or not isinstance(block, dict):
            continue
        body = (block.get('data') or {}).get('body') if isinstance(block.get('data'), dict) else None
        if isinstance(body, dict) and isinstance(body.get('song'), dict):
            songs = body['song'].get('list')
            if isinstance(songs, list):
                return songs
    return []


def parse_qq_search(payload: Any) -> Optional[SearchHit]:
    if not isinstance(payload, dict):
        return None
    song = _first_dict(_qq_song_list(payload))
    if song is None:
        return None

    song_id = first_of(song, ('songmid', 'mid')).strip()
    if not song_id:
        return None

    return SearchHit(
        external_id=song_id,
        title=first_of(song, ('songname', 'name', 'title')),
        artist=_join_names(song.get('singer')),
    )


SEARCH_PARSERS: Dict[str, Callable[[Any], Optional[SearchHit]]] = {
    'kuwo': parse_kuwo_search,
    'netease': parse_netease_search,
    'qq': parse_qq_search,
}
