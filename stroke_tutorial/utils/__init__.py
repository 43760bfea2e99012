# -*- coding: utf-8 -*-
"""
工具模块

提供日志配置、文件命名与压缩包等辅助工具
"""

from .file_utils import FileManager, ArchiveManager, make_slug, step_filename
from .logging_utils import setup_logging, LogManager, ContextLogger, ColoredFormatter

__all__ = [
    # 文件操作工具
    'FileManager',
    'ArchiveManager',
    'make_slug',
    'step_filename',

    # 日志工具
    'setup_logging',
    'LogManager',
    'ContextLogger',
    'ColoredFormatter'
]
