"""
数据源异常定义
每个异常带有协议错误码与 HTTP 状态码，供 Web 层统一渲染
"""

from typing import Optional


class UDFError(Exception):
    """UDF 数据源异常基类"""
    code = "error"
    status_code = 500

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.code)

    @property
    def message(self) -> str:
        return str(self)


class SymbolNotFound(UDFError):
    """未知的 symbol"""
    code = "unknown_symbol"
    status_code = 404


class InvalidResolution(UDFError):
    """不支持的 resolution"""
    code = "invalid_resolution"
    status_code = 400


class UpstreamError(UDFError):
    """
    上游 REST API 请求失败

    包括网络错误、空响应、JSON 解析失败以及带 error 字段的响应体。
    upstream_status 保存上游返回的 statusCode（如有）。
    """
    code = "upstream_error"
    status_code = 502

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
