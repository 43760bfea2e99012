# -*- coding: utf-8 -*-
"""
导出模块

包含资源句柄、栅格化、动画编码和导出编排
"""

from .resources import ExportResources
from .rasterizer import Rasterizer, RasterImage
from .encoders import FrameEncoder, GifEncoder, VideoEncoder
from .export_orchestrator import (
    ExportOrchestrator,
    ExportFormat,
    ExportSettings,
    ExportArtifact,
    CancellationToken,
)

__all__ = [
    'ExportResources',
    'Rasterizer',
    'RasterImage',
    'FrameEncoder',
    'GifEncoder',
    'VideoEncoder',
    'ExportOrchestrator',
    'ExportFormat',
    'ExportSettings',
    'ExportArtifact',
    'CancellationToken'
]
