# -*- coding: utf-8 -*-
"""
异常定义模块

笔画解析、步骤合并与导出过程中使用的异常类型
"""

from typing import Optional


class StrokeTutorialError(Exception):
    """所有异常的基类"""


class StrokeParseError(StrokeTutorialError, ValueError):
    """输入的SVG内容不符合要求"""


class EmptyInputError(StrokeParseError):
    """输入为空或仅包含空白字符"""


class MalformedMarkupError(StrokeParseError):
    """SVG无法解析为格式良好的文档"""


class MissingViewportError(StrokeParseError):
    """根元素缺少viewBox属性"""


class NoStrokesError(StrokeParseError):
    """文档中没有任何笔画元素"""


class ExportError(StrokeTutorialError, RuntimeError):
    """
    导出失败

    Args:
        message (str): 错误信息
        export_format (str, optional): 导出格式
    """

    def __init__(self, message: str, export_format: Optional[str] = None):
        super().__init__(message)
        self.export_format = export_format


class RasterizationError(ExportError):
    """SVG栅格化失败"""


class EncoderError(ExportError):
    """视频/GIF编码器或压缩包写入失败"""


class ExportCancelledError(ExportError):
    """导出被取消"""


# 可能因运行环境缺少编码支持而失败的格式（仅单文件导出）
RUNTIME_SENSITIVE_FORMATS = ('video', 'gif', 'webp')

RUNTIME_SUPPORT_HINT = ' Your runtime might not support this feature or format.'


def describe_export_failure(export_format: str, error: BaseException) -> str:
    """
    生成面向用户的导出失败信息

    Args:
        export_format (str): 导出格式名称
        error (BaseException): 捕获到的异常

    Returns:
        str: 单行错误信息
    """
    detail = str(error) or error.__class__.__name__
    message = f"Export failed: {detail}"

    if getattr(export_format, 'value', export_format) in RUNTIME_SENSITIVE_FORMATS:
        message += RUNTIME_SUPPORT_HINT

    return message
