import pytest

from hbmusic.models import SearchHit
from hbmusic.sources import fill_placeholders, parse_kuwo_search, parse_netease_search, parse_qq_search


class TestFillPlaceholders:

    def test_known_placeholders(self):
        assert fill_placeholders('s={{keyword}}&p={{ page }}&n={{limit}}',
                                 {'keyword': '晴天', 'page': 1, 'limit': 5}) == 's=晴天&p=1&n=5'

    def test_unknown_placeholder_becomes_empty(self):
        assert fill_placeholders('a={{keyword}}&b={{token}}', {'keyword': 'x'}) == 'a=x&b='

    def test_nested_structures(self):
        descriptor = {'params': {'w': '{{keyword}}', 'n': ['{{limit}}', 3]}, 'flag': True}
        assert fill_placeholders(descriptor, {'keyword': 'k', 'limit': 1}) == {
            'params': {'w': 'k', 'n': ['1', 3]}, 'flag': True,
        }


class TestKuwo:

    def test_extracts_id_from_musicrid(self):
        payload = {'abslist': [{'MUSICRID': 'MUSIC_228908', 'SONGNAME': '晴天', 'ARTIST': '周杰伦&杨瑞代'}]}
        assert parse_kuwo_search(payload) == SearchHit('228908', '晴天', '周杰伦/杨瑞代')

    def test_comprehensive_search_layout(self):
        payload = {'content': [{'bdc': {}}, {'musicpage': {'abslist': [
            {'MUSICRID': 'MUSIC_1', 'NAME': 'a', 'ARTIST': 'b'}]}}]}
        assert parse_kuwo_search(payload).external_id == '1'

    def test_falls_back_to_target_id(self):
        payload = {'abslist': [{'MUSICRID': 'broken', 'DC_TARGETID': '77', 'SONGNAME': 's'}]}
        assert parse_kuwo_search(payload).external_id == '77'

    @pytest.mark.parametrize('payload', [
        None, [], {}, {'abslist': []}, {'abslist': ['x']}, {'abslist': [{'MUSICRID': ''}]},
    ])
    def test_malformed_is_not_found(self, payload):
        assert parse_kuwo_search(payload) is None


class TestNetease:

    def test_parses_first_song(self):
        payload = {'result': {'songs': [
            {'id': 186016, 'name': '晴天', 'artists': [{'name': '周杰伦'}, {'name': 'x'}]},
            {'id': 2, 'name': 'other'},
        ]}}
        assert parse_netease_search(payload) == SearchHit('186016', '晴天', '周杰伦/x')

    def test_ar_field(self):
        payload = {'result': {'songs': [{'id': 5, 'name': 'n', 'ar': [{'name': 'a'}]}]}}
        assert parse_netease_search(payload).artist == 'a'

    @pytest.mark.parametrize('payload', [
        {'code': 200}, {'result': None}, {'result': {'songs': []}}, {'result': {'songs': [{'name': 'no id'}]}},
    ])
    def test_malformed_is_not_found(self, payload):
        assert parse_netease_search(payload) is None


class TestQQ:

    def test_classic_layout(self):
        payload = {'data': {'song': {'list': [
            {'songmid': '0039MnYb0qxYhV', 'songname': '晴天', 'singer': [{'name': '周杰伦'}]}]}}}
        assert parse_qq_search(payload) == SearchHit('0039MnYb0qxYhV', '晴天', '周杰伦')

    def test_musicu_layout(self):
        payload = {'code': 0, 'req_1': {'data': {'body': {'song': {'list': [
            {'mid': '002', 'title': 't', 'singer': []}]}}}}}
        assert parse_qq_search(payload) == SearchHit('002', 't', '')

    @pytest.mark.parametrize('payload', [
        'text', {'data': {}}, {'req_0': {'data': None}}, {'data': {'song': {'list': [{'songname': 'x'}]}}},
    ])
    def test_malformed_is_not_found(self, payload):
        assert parse_qq_search(payload) is None
