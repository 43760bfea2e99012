# -*- coding: utf-8 -*-
"""
文件操作工具

提供导出文件命名、压缩包生成和产物写入功能
"""

import io
import logging
import re
import zipfile
from pathlib import Path
from typing import Dict, Optional, Union

DEFAULT_SLUG = 'drawing'
MAX_SLUG_LENGTH = 30

_SOURCE_EXTENSION = re.compile(r'\.(svg|png|jpeg|jpg)$')
_NON_ALPHANUMERIC = re.compile(r'[^a-z0-9]+')


def make_slug(name: Optional[str]) -> str:
    """
    根据输入名称生成文件名前缀

    转小写，去掉源文件扩展名，非字母数字字符合并为单个连字符，截断为30个字符

    Args:
        name (str): 描述性名称（文件名或提示词）

    Returns:
        str: 文件名前缀，为空时返回 'drawing'
    """
    slug = (name or '').lower()
    slug = _SOURCE_EXTENSION.sub('', slug)
    slug = _NON_ALPHANUMERIC.sub('-', slug)
    return slug[:MAX_SLUG_LENGTH] or DEFAULT_SLUG


def step_filename(slug: str, label: str, index: int, extension: str, width: int = 0) -> str:
    """
    生成单步产物文件名

    Args:
        slug (str): 文件名前缀
        label (str): 类型标签，如 'step'、'single-step'
        index (int): 步骤编号
        extension (str): 扩展名
        width (int): 编号补零宽度

    Returns:
        str: 文件名，如 'cat-single-step-003.png'
    """
    number = str(index).zfill(width) if width else str(index)
    return f"{slug}-{label}-{number}.{extension}"


class ArchiveManager:
    """
    压缩文件管理器

    在内存中生成ZIP数据
    """

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED):
        """
        初始化压缩文件管理器

        Args:
            compression (int): zipfile压缩方式
        """
        self.compression = compression
        self.logger = logging.getLogger(__name__)

    def build_zip(self, entries: Dict[str, bytes]) -> bytes:
        """
        将文件名到数据的映射打包为ZIP

        Args:
            entries (Dict[str, bytes]): 文件名 -> 文件内容（按插入顺序写入）

        Returns:
            bytes: ZIP数据
        """
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, 'w', self.compression) as zipf:
            for filename, data in entries.items():
                zipf.writestr(filename, data)

        self.logger.debug(f"ZIP archive created with {len(entries)} entries")
        return buffer.getvalue()


class FileManager:
    """
    文件管理器

    将导出产物写入输出目录
    """

    def __init__(self, output_dir: Union[str, Path]):
        """
        初始化文件管理器

        Args:
            output_dir (str | Path): 输出目录
        """
        self.output_dir = Path(output_dir)
        self.logger = logging.getLogger(__name__)

    def write_bytes(self, filename: str, data: bytes) -> Path:
        """
        写入文件，必要时创建目录

        Args:
            filename (str): 文件名
            data (bytes): 文件内容

        Returns:
            Path: 写入的文件路径
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.output_dir / filename
        file_path.write_bytes(data)
        self.logger.info(f"File written: {file_path} ({len(data)} bytes)")
        return file_path
