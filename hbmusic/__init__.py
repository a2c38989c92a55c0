#!/usr/bin/env python3
"""
HBMusic - 微信点歌插件后端服务

按音源优先级搜索歌曲，返回经本服务代理的播放、封面、歌词链接
"""

__version__ = "2.0.0"

from .app import create_app

__all__ = ['create_app', '__version__']
