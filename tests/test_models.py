import dataclasses

import pytest

from hbmusic.models import SongRecord, detail_link


@pytest.mark.parametrize('source, song_id, expected', [
    ('kuwo', '12345', 'https://www.kuwo.cn/play_detail/12345'),
    ('netease', '12345', 'https://music.163.com/#/song?id=12345'),
    ('qq', '0039MnYb0qxYhV', 'https://y.qq.com/n/ryqq/songDetail/0039MnYb0qxYhV'),
    ('kuwo-fallback', '12345', 'https://www.kuwo.cn/play_detail/12345'),
    ('unknown', '1', ''),
])
def test_detail_link(source, song_id, expected):
    assert detail_link(source, song_id) == expected


def test_payload_uses_proxy_urls():
    record = SongRecord(title='晴天', artist='', source='kuwo', external_id='12345', bitrate='flac')

    payload = record.to_payload('https://hb.test/')

    assert payload == {
        'code': 200,
        'title': '晴天',
        'singer': '未知歌手',
        'cover': 'https://hb.test/cover?source=kuwo&id=12345',
        'link': 'https://www.kuwo.cn/play_detail/12345',
        'music_url': 'https://hb.test/stream?source=kuwo&id=12345&br=flac',
        'lyric': 'https://hb.test/lyric?source=kuwo&id=12345',
        'source': 'kuwo',
    }


def test_record_is_immutable():
    record = SongRecord(title='t', artist='a', source='qq', external_id='1', bitrate='320k')

    with pytest.raises(dataclasses.FrozenInstanceError):
        record.external_id = '2'
