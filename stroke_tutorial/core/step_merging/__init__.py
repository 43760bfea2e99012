# -*- coding: utf-8 -*-
"""
步骤合并模块

将笔画序列合并为有限数量的展示步骤
"""

from .step_consolidator import (
    StepOptions,
    Step,
    consolidate,
    build_step_sequence,
    estimate_stroke_size,
    MIN_STEPS,
    MAX_STEPS,
)

__all__ = [
    'StepOptions',
    'Step',
    'consolidate',
    'build_step_sequence',
    'estimate_stroke_size',
    'MIN_STEPS',
    'MAX_STEPS'
]
