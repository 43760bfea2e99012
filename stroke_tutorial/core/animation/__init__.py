# -*- coding: utf-8 -*-
"""
帧合成模块

根据步骤序列合成累积帧、高亮帧和最终帧
"""

from .frame_synthesizer import (
    FrameSynthesizer,
    Frame,
    FinalFrameOverride,
    HighlightPolicy,
    StrokeRecord,
    recolor_stroke,
    recolor_step,
    detect_mime_type,
    DONE_COLOR,
    IN_PROGRESS_COLOR,
    DEFAULT_HOLD_MS,
)

__all__ = [
    'FrameSynthesizer',
    'Frame',
    'FinalFrameOverride',
    'HighlightPolicy',
    'StrokeRecord',
    'recolor_stroke',
    'recolor_step',
    'detect_mime_type',
    'DONE_COLOR',
    'IN_PROGRESS_COLOR',
    'DEFAULT_HOLD_MS'
]
