"""
测试公共组件：假的 requests Session / Response
"""

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from hbmusic.app import create_app
from hbmusic.config import Settings


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, content=b'', headers=None):
        self.status_code = status_code
        self._json = json_data
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})
        self.closed = False

    def json(self):
        if self._json is None:
            raise ValueError('No JSON object could be decoded')
        return self._json

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """
    按顺序匹配路由：routes 为 [(method, url 前缀, 响应或异常或函数)]，
    同一路由可以给一个列表，每次调用依次弹出
    """

    def __init__(self, routes=None):
        self.routes = list(routes or [])
        self.calls = []
        self.headers = {}

    def add(self, method, prefix, *responses):
        self.routes.append((method, prefix, list(responses)))

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for route_method, prefix, responses in self.routes:
            if route_method != method or not url.startswith(prefix):
                continue
            result = responses.pop(0) if len(responses) > 1 else responses[0]
            if callable(result) and not isinstance(result, FakeResponse):
                result = result(method, url, kwargs)
            if isinstance(result, Exception):
                raise result
            return result
        raise requests.ConnectionError(f'no route for {method} {url}')

    def get(self, url, **kwargs):
        return self.request('GET', url, **kwargs)

    def calls_to(self, prefix):
        return [c for c in self.calls if c[1].startswith(prefix)]


PRIMARY = 'https://primary.test/api'
FALLBACK = 'https://fallback.test/api'
BASE_URL = 'https://hb.test'


def make_settings(**overrides):
    values = dict(
        base_url=BASE_URL,
        tunehub_base=PRIMARY,
        tunehub_api_key='secret',
        fallback_base=FALLBACK,
        bitrate='320k',
        max_retries=2,
        source_priority=('kuwo', 'netease', 'qq'),
        ua_filter_enabled=True,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_app(session, sleeps):
    def factory(**overrides):
        app = create_app(make_settings(**overrides), session=session, sleep=sleeps.append)
        app.testing = True
        return app
    return factory


@pytest.fixture
def client(make_app):
    return make_app().test_client()
