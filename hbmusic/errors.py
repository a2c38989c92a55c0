#!/usr/bin/env python3
"""
异常定义

每个异常自带 HTTP 状态码和面向用户的提示信息，由 Flask 错误处理器统一转换为 JSON
"""

from typing import Optional


class HBMusicError(Exception):
    """服务异常基类"""

    status_code = 500
    default_message = '服务内部错误'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'code': self.status_code, 'message': self.message}


class ValidationError(HBMusicError):
    """请求参数缺失或非法"""

    status_code = 400
    default_message = '请求参数错误'

    def __init__(self, param: str, message: Optional[str] = None):
        self.param = param
        super().__init__(message or f'缺少 {param} 参数')


class SongNotFound(HBMusicError):
    """所有音源都没有找到歌曲，或资源不存在"""

    status_code = 404
    default_message = '未找到歌曲'

    def __init__(self, keyword: str = '', message: Optional[str] = None):
        self.keyword = keyword
        super().__init__(message or (f'未找到歌曲: {keyword}' if keyword else self.default_message))

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.keyword:
            data['keyword'] = self.keyword
        return data


class UpstreamError(HBMusicError):
    """上游接口失败（网络错误、重试耗尽、5xx、不可重试的 4xx、响应格式错误）"""

    status_code = 502
    default_message = '上游服务请求失败'

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(message)


class QuotaExhausted(UpstreamError):
    """主 API 额度耗尽，触发降级到备用免费 API"""

    default_message = '主 API 额度不足'
