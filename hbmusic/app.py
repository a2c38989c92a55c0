#!/usr/bin/env python3
"""
HTTP 接口

路由:
- /        搜索歌曲（?name=歌曲名）
- /stream  音频流代理（?source=&id=&br=）
- /cover   封面代理（?source=&id=）
- /lyric   歌词代理（?source=&id=）
- /health  存活检查
- /status  上游健康状态（60 秒缓存）
"""

import time
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import requests
from flask import Flask, Response, current_app, jsonify, request, stream_with_context
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import Settings, SUPPORTED_BITRATES
from .errors import HBMusicError, UpstreamError, ValidationError
from .health import HealthCache, UpstreamProbe
from .proxy import ResourceProxy
from .resolver import FallbackResolver
from .sources import FreeApiAdapter, build_primary_adapters
from .ua_filter import register_ua_filter
from .upstream import UpstreamClient, create_session

logger = logging.getLogger(__name__)


def _services() -> dict:
    return current_app.extensions['hbmusic']


def _settings() -> Settings:
    return current_app.config['HBMUSIC_SETTINGS']


def _require(name: str) -> str:
    value = request.args.get(name, '').strip()
    if not value:
        raise ValidationError(name)
    return value


def search():
    """主接口：搜索歌曲"""
    name = request.args.get('name', '').strip()
    if not name:
        raise ValidationError('name', '缺少 name 参数，请使用 ?name=歌曲名 格式请求')

    try:
        record = _services()['resolver'].search(name)
    except UpstreamError as e:
        logger.error(f"搜索歌曲失败: {name} - {e}")
        return jsonify({'code': 500, 'message': f'服务内部错误: {e.message}'}), 500

    return jsonify(record.to_payload(_settings().base_url))


def _proxy_asset(kind: str, bitrate: Optional[str] = None) -> Response:
    source = _require('source')
    song_id = _require('id')
    asset = _services()['proxy'].open(
        source, song_id, kind,
        range_header=request.headers.get('Range'),
        bitrate=bitrate,
    )
    return Response(stream_with_context(asset.chunks), status=asset.status, headers=asset.headers)


def stream():
    """音频流代理"""
    br = request.args.get('br', '').strip().lower()
    if br and br not in SUPPORTED_BITRATES:
        raise ValidationError('br', f'不支持的音质: {br}')
    return _proxy_asset('audio', bitrate=br or None)


def cover():
    """封面代理"""
    return _proxy_asset('cover')


def lyric():
    """歌词代理"""
    return _proxy_asset('lyric')


def health():
    """健康检查"""
    return jsonify({'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()})


def status():
    """上游状态"""
    settings = _settings()
    data = _services()['health'].get().to_dict()
    data.update({
        'ttl': settings.health_ttl,
        'sources': list(settings.source_priority),
        'bitrate': settings.bitrate,
        'force_fallback': settings.force_fallback,
    })
    return jsonify(data)


def handle_service_error(e: HBMusicError):
    return jsonify(e.to_dict()), e.status_code


def handle_http_error(e: HTTPException):
    return jsonify({'code': e.code, 'message': e.description}), e.code


def handle_unexpected_error(e: Exception):
    logger.exception(f"未处理的异常 [{request.path}]: {e}")
    return jsonify({'code': 500, 'message': '服务内部错误'}), 500


def create_app(settings: Optional[Settings] = None, session: Optional[requests.Session] = None,
               sleep: Callable[[float], None] = time.sleep) -> Flask:
    """
    创建 Flask 应用

    Args:
        settings: 配置，默认从环境变量读取
        session: 对外请求使用的 Session，测试时可替换
        sleep: 重试退避使用的等待函数
    """
    settings = settings or Settings.from_env()
    session = session or create_session()

    client = UpstreamClient(session, max_retries=settings.max_retries, sleep=sleep)
    resolver = FallbackResolver(
        build_primary_adapters(settings, client),
        FreeApiAdapter(client, settings.fallback_base),
        settings.source_priority,
        settings.bitrate,
        force_fallback=settings.force_fallback,
    )
    probe = UpstreamProbe(session, settings.tunehub_base, settings.fallback_base,
                          force_fallback=settings.force_fallback)

    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.config['HBMUSIC_SETTINGS'] = settings
    app.extensions['hbmusic'] = {
        'resolver': resolver,
        'proxy': ResourceProxy(resolver.adapter_for, client, settings.bitrate),
        'health': HealthCache(probe, ttl=settings.health_ttl),
    }

    CORS(app)
    if settings.ua_filter_enabled:
        register_ua_filter(app, settings.ua_blacklist)

    app.add_url_rule('/', 'search', search)
    app.add_url_rule('/stream', 'stream', stream)
    app.add_url_rule('/cover', 'cover', cover)
    app.add_url_rule('/lyric', 'lyric', lyric)
    app.add_url_rule('/health', 'health', health)
    app.add_url_rule('/status', 'status', status)

    app.register_error_handler(HBMusicError, handle_service_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected_error)

    return app
