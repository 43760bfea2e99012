# -*- coding: utf-8 -*-
"""
核心算法模块

包含笔画解析、步骤合并、帧合成与导出编排的实现
"""

__version__ = '1.0.0'

# 导入主要模块
from .stroke_parsing import SvgStrokeParser, Drawing, BoundingFrame, parse_svg
from .step_merging import Step, StepOptions, consolidate, build_step_sequence
from .animation import FrameSynthesizer, FinalFrameOverride, Frame, HighlightPolicy
from .export import ExportOrchestrator, ExportFormat, ExportSettings, ExportResources
from .errors import StrokeTutorialError, StrokeParseError, ExportError, describe_export_failure

__all__ = [
    'SvgStrokeParser',
    'Drawing',
    'BoundingFrame',
    'parse_svg',
    'Step',
    'StepOptions',
    'consolidate',
    'build_step_sequence',
    'FrameSynthesizer',
    'FinalFrameOverride',
    'Frame',
    'HighlightPolicy',
    'ExportOrchestrator',
    'ExportFormat',
    'ExportSettings',
    'ExportResources',
    'StrokeTutorialError',
    'StrokeParseError',
    'ExportError',
    'describe_export_failure'
]
