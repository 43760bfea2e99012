# -*- coding: utf-8 -*-
"""
导出资源模块

进程级共享的导出资源句柄，启动时创建一次，显式传入导出器
"""

import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Optional

from PIL import features

logger = logging.getLogger(__name__)


class ExportResources:
    """
    导出资源句柄

    各项资源在首次使用时初始化，且只初始化一次：
    - WebP编码支持检测结果
    - 视频编码使用的临时目录
    """

    def __init__(self, scratch_root: Optional[str] = None):
        """
        初始化资源句柄

        Args:
            scratch_root (str, optional): 临时目录的父目录
        """
        self.scratch_root = scratch_root
        self._lock = threading.Lock()
        self._webp_supported: Optional[bool] = None
        self._scratch_dir: Optional[Path] = None

    @classmethod
    def create(cls, scratch_root: Optional[str] = None) -> "ExportResources":
        return cls(scratch_root)

    @property
    def webp_supported(self) -> bool:
        """当前运行环境的Pillow是否支持WebP编码"""
        with self._lock:
            if self._webp_supported is None:
                self._webp_supported = bool(features.check("webp"))
                if not self._webp_supported:
                    logger.warning("WebP encoding is not available, PNG will be used instead")
            return self._webp_supported

    @property
    def scratch_dir(self) -> Path:
        """视频编码临时目录"""
        with self._lock:
            if self._scratch_dir is None:
                self._scratch_dir = Path(tempfile.mkdtemp(prefix="stroke_tutorial_", dir=self.scratch_root))
                logger.debug(f"Created scratch directory {self._scratch_dir}")
            return self._scratch_dir

    def close(self):
        """释放临时目录"""
        with self._lock:
            if self._scratch_dir is not None:
                shutil.rmtree(self._scratch_dir, ignore_errors=True)
                self._scratch_dir = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
