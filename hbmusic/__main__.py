#!/usr/bin/env python3
"""
启动点歌服务

    python -m hbmusic
"""

from .app import create_app
from .config import Settings, setup_logging


def main():
    settings = Settings.from_env()
    logger = setup_logging(settings.log_level)
    app = create_app(settings)

    logger.info(f"HBMusic 点歌服务启动: http://{settings.host}:{settings.port}")
    logger.info(f"音源: {' > '.join(settings.source_priority)}"
                f"{'（强制备用 API）' if settings.force_fallback else ''}")
    logger.info(f"音质: {settings.bitrate}")
    if not settings.tunehub_api_key and not settings.force_fallback:
        logger.warning("未设置 TUNEHUB_API_KEY，主 API 可能无法解析")

    app.run(host=settings.host, port=settings.port, debug=False, threaded=True)


if __name__ == '__main__':
    main()
