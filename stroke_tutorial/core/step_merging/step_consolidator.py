# -*- coding: utf-8 -*-
"""
步骤合并模块

将笔画序列合并为不超过指定数量的展示步骤：
1. 按几何数据长度估算笔画大小
2. 贪心加权装箱，按顺序分组
3. 保证不丢失、不重复、不改变顺序
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

MIN_STEPS = 1
MAX_STEPS = 20

# d="..." 或 d='...'
_PATH_DATA_PATTERN = re.compile(r"""\sd\s*=\s*(["'])(.*?)\1""", re.IGNORECASE | re.DOTALL)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepOptions:
    """步骤合并选项"""
    merge_enabled: bool = False
    max_steps: int = MAX_STEPS

    def __post_init__(self):
        if not isinstance(self.max_steps, int) or isinstance(self.max_steps, bool):
            raise ValueError(f"max_steps must be an integer, got {self.max_steps!r}")
        if not MIN_STEPS <= self.max_steps <= MAX_STEPS:
            raise ValueError(
                f"max_steps must be between {MIN_STEPS} and {MAX_STEPS}, got {self.max_steps}"
            )


@dataclass(frozen=True)
class Step:
    """一个展示步骤，包含一个或多个笔画"""
    strokes: Tuple[str, ...]

    def __post_init__(self):
        if not self.strokes:
            raise ValueError("A step must contain at least one stroke")

    @property
    def markup(self) -> str:
        return "".join(self.strokes)

    def __len__(self):
        return len(self.strokes)

    def __str__(self):
        return self.markup


def estimate_stroke_size(stroke: str) -> int:
    """
    估算笔画的绘制复杂度

    优先使用d属性（路径数据）的长度，没有或为空时使用整个片段的长度

    Args:
        stroke (str): 笔画标记片段

    Returns:
        int: 大小估计值
    """
    match = _PATH_DATA_PATTERN.search(stroke)
    if match and match.group(2):
        return len(match.group(2))
    return len(stroke)


def consolidate(strokes: Sequence[str], max_steps: int,
                size_of: Callable[[str], int] = estimate_stroke_size) -> List[Step]:
    """
    将笔画合并为不超过max_steps个步骤

    Args:
        strokes (Sequence[str]): 有序笔画片段
        max_steps (int): 最大步骤数，<=0 时全部合并为一个步骤
        size_of (Callable): 笔画大小估算函数

    Returns:
        List[Step]: 步骤序列
    """
    if not strokes:
        return []
    if max_steps <= 0:
        return [Step(tuple(strokes))]
    if len(strokes) <= max_steps:
        return [Step((stroke,)) for stroke in strokes]

    sizes = [size_of(stroke) for stroke in strokes]
    total_size = sum(sizes)
    target_group_count = max(1, min(max_steps, len(strokes)))
    target_group_size = total_size / target_group_count

    groups: List[List[str]] = []
    current: List[str] = []
    current_size = 0
    remaining_strokes = len(strokes)

    for stroke, size in zip(strokes, sizes):
        current.append(stroke)
        current_size += size
        remaining_strokes -= 1

        groups_formed = len(groups)
        # 最后一组留给剩余笔画
        remaining_groups = target_group_count - groups_formed - 1

        should_close = (
            groups_formed < target_group_count - 1
            and current_size >= target_group_size
            and remaining_strokes >= remaining_groups
        )

        if should_close:
            groups.append(current)
            current = []
            current_size = 0

    if current:
        groups.append(current)

    while len(groups) > target_group_count:
        tail = groups.pop()
        groups[-1].extend(tail)

    logger.debug(
        f"Consolidated {len(strokes)} strokes into {len(groups)} steps "
        f"(max_steps={max_steps}, target_size={target_group_size:.1f})"
    )

    return [Step(tuple(group)) for group in groups]


def build_step_sequence(strokes: Sequence[str], options: StepOptions) -> List[Step]:
    """
    根据合并选项构建步骤序列

    Args:
        strokes (Sequence[str]): 有序笔画片段
        options (StepOptions): 合并选项

    Returns:
        List[Step]: 步骤序列
    """
    if options.merge_enabled:
        return consolidate(strokes, options.max_steps)
    return [Step((stroke,)) for stroke in strokes]
