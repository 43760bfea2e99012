# -*- coding: utf-8 -*-
"""
帧合成模块

根据步骤序列生成可渲染的场景：
1. 累积模式：已完成步骤按原样拼接
2. 高亮模式：已完成步骤统一着色，当前步骤使用高亮色
3. 最终帧：替换图片或完整绘图
"""

import base64
import io
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union
from xml.etree import ElementTree as ET

from PIL import Image, UnidentifiedImageError

from ..errors import MalformedMarkupError
from ..step_merging import Step
from ..stroke_parsing import BoundingFrame, SVG_NS, XLINK_NS, serialize_element

DONE_COLOR = "#000000"
IN_PROGRESS_COLOR = "#FF0000"
DEFAULT_HOLD_MS = 1000

_COLOR_PROPERTIES = ("stroke", "fill")

UTF8_BOM = b"\xef\xbb\xbf"
SVG_SNIFF_BYTES = 4096
# XML声明、注释、DOCTYPE之后出现的<svg根元素
_SVG_ROOT_PATTERN = re.compile(rb"<svg[\s>/]")

logger = logging.getLogger(__name__)


class HighlightPolicy(Enum):
    """着色策略"""
    NONE = "none"
    HIGHLIGHT_CURRENT = "highlight_current"


@dataclass(frozen=True)
class Frame:
    """合成的场景"""
    content: str
    viewport: BoundingFrame

    def to_svg(self, width: Optional[int] = None, height: Optional[int] = None) -> str:
        """
        生成独立的SVG文档

        Args:
            width (int, optional): 输出像素宽度
            height (int, optional): 输出像素高度

        Returns:
            str: SVG文档
        """
        size = ""
        if width is not None and height is not None:
            size = f' width="{width}" height="{height}" preserveAspectRatio="xMidYMid meet"'
        return (
            f'<svg xmlns="{SVG_NS}" xmlns:xlink="{XLINK_NS}" '
            f'viewBox="{self.viewport.raw}"{size}>{self.content}</svg>'
        )


@dataclass(frozen=True)
class FinalFrameOverride:
    """最终帧替换设置"""
    replacement_image: Optional[bytes] = None
    mime_type: str = "image/png"
    hold_ms: int = DEFAULT_HOLD_MS

    def __post_init__(self):
        if self.hold_ms <= 0:
            raise ValueError(f"hold_ms must be positive, got {self.hold_ms}")

    @property
    def has_replacement(self) -> bool:
        return bool(self.replacement_image)

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.replacement_image).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    @classmethod
    def from_file(cls, image_path: Union[str, Path], hold_ms: int = DEFAULT_HOLD_MS) -> "FinalFrameOverride":
        """
        从文件加载替换图片

        Args:
            image_path (str | Path): 图片路径（栅格图或SVG）
            hold_ms (int): 最终帧停留时长（毫秒）

        Returns:
            FinalFrameOverride: 替换设置
        """
        data = Path(image_path).read_bytes()
        return cls(replacement_image=data, mime_type=detect_mime_type(data), hold_ms=hold_ms)


def detect_mime_type(data: bytes) -> str:
    """
    检测图片数据的MIME类型

    Args:
        data (bytes): 图片数据

    Returns:
        str: MIME类型
    """
    head = data[:SVG_SNIFF_BYTES]
    if head.startswith(UTF8_BOM):
        head = head[len(UTF8_BOM):]
    head = head.lstrip()
    if head.startswith(b"<") and _SVG_ROOT_PATTERN.search(head):
        return "image/svg+xml"

    try:
        with Image.open(io.BytesIO(data)) as image:
            mime = Image.MIME.get(image.format)
    except UnidentifiedImageError as e:
        raise ValueError("Replacement image format is not recognized") from e

    return mime or "application/octet-stream"


class StrokeRecord:
    """
    笔画片段的结构化表示

    解析一次，之后通过修改属性完成重新着色
    """

    def __init__(self, fragment: str):
        try:
            self.element = ET.fromstring(fragment)
        except ET.ParseError as e:
            raise MalformedMarkupError(f"Stroke fragment could not be parsed: {e}") from e

    @property
    def geometry(self) -> Optional[str]:
        return self.element.get("d")

    def recolor(self, color: str) -> "StrokeRecord":
        """
        移除原有的stroke/fill颜色并注入新颜色

        Args:
            color (str): 颜色值

        Returns:
            StrokeRecord: self
        """
        attrib = self.element.attrib
        for name in _COLOR_PROPERTIES:
            attrib.pop(name, None)

        style = attrib.pop("style", None)
        if style is not None:
            declarations = [
                declaration.strip() for declaration in style.split(";")
                if declaration.strip()
                and declaration.split(":", 1)[0].strip().lower() not in _COLOR_PROPERTIES
            ]
            if declarations:
                attrib["style"] = ";".join(declarations)

        # 新颜色放在最后，紧挨自闭合标签
        attrib["fill"] = color
        attrib["stroke"] = color
        return self

    def to_markup(self) -> str:
        return serialize_element(self.element)


def recolor_stroke(fragment: str, color: str) -> str:
    """
    将单个笔画片段重新着色

    Args:
        fragment (str): 笔画标记
        color (str): 颜色值

    Returns:
        str: 着色后的标记
    """
    return StrokeRecord(fragment).recolor(color).to_markup()


def recolor_step(step: Step, color: str) -> str:
    """对步骤中的每个笔画重新着色并拼接"""
    return "".join(recolor_stroke(stroke, color) for stroke in step.strokes)


class FrameSynthesizer:
    """帧合成器"""

    def __init__(self, viewport: BoundingFrame,
                 done_color: str = DONE_COLOR,
                 in_progress_color: str = IN_PROGRESS_COLOR):
        """
        初始化帧合成器

        Args:
            viewport (BoundingFrame): 绘图坐标框
            done_color (str): 已完成步骤颜色
            in_progress_color (str): 当前步骤颜色
        """
        self.viewport = viewport
        self.done_color = done_color
        self.in_progress_color = in_progress_color

    def synthesize(self, steps: Sequence[Step], up_to_index: int,
                   policy: HighlightPolicy = HighlightPolicy.NONE) -> Frame:
        """
        合成包含前up_to_index个步骤的场景

        Args:
            steps (Sequence[Step]): 步骤序列
            up_to_index (int): 步骤数，限制在 [0, len(steps)]
            policy (HighlightPolicy): 着色策略

        Returns:
            Frame: 场景
        """
        count = self._clamp(up_to_index, len(steps))
        visible = steps[:count]

        if policy is HighlightPolicy.HIGHLIGHT_CURRENT and visible:
            parts = [recolor_step(step, self.done_color) for step in visible[:-1]]
            parts.append(recolor_step(visible[-1], self.in_progress_color))
            content = "".join(parts)
        else:
            content = "".join(step.markup for step in visible)

        return Frame(content=content, viewport=self.viewport)

    def single_step(self, steps: Sequence[Step], index: int) -> Frame:
        """
        仅包含第index个步骤（从1开始）的场景

        Args:
            steps (Sequence[Step]): 步骤序列
            index (int): 步骤编号

        Returns:
            Frame: 场景
        """
        index = self._clamp(index, len(steps))
        content = steps[index - 1].markup if index > 0 else ""
        return Frame(content=content, viewport=self.viewport)

    def final_frame(self, steps: Sequence[Step],
                    override: Optional[FinalFrameOverride] = None) -> Frame:
        """
        合成最终帧

        Args:
            steps (Sequence[Step]): 步骤序列
            override (FinalFrameOverride, optional): 最终帧替换设置

        Returns:
            Frame: 场景
        """
        if override is not None and override.has_replacement:
            logger.debug(f"Final frame replaced by {override.mime_type} image "
                         f"({len(override.replacement_image)} bytes)")
            href = override.to_data_url()
            vp = self.viewport
            content = (
                f'<image href="{href}" xlink:href="{href}" '
                f'x="{vp.min_x:g}" y="{vp.min_y:g}" width="{vp.width:g}" height="{vp.height:g}" '
                f'preserveAspectRatio="xMidYMid meet" />'
            )
            return Frame(content=content, viewport=self.viewport)

        return self.synthesize(steps, len(steps), HighlightPolicy.NONE)

    @staticmethod
    def _clamp(index: int, upper: int) -> int:
        return max(0, min(index, upper))
