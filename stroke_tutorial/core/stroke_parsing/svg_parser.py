# -*- coding: utf-8 -*-
"""
SVG笔画解析模块

将原始SVG文本解析为绘图结构：
1. 校验输入内容
2. 提取viewBox坐标框
3. 按文档顺序提取每个笔画元素的完整标记
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
from xml.etree import ElementTree as ET

from ..errors import (
    EmptyInputError,
    MalformedMarkupError,
    MissingViewportError,
    NoStrokesError,
)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

# 序列化时使用默认命名空间，避免输出 ns0: 前缀
ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)

DEFAULT_STROKE_TAGS = ("path",)

_NUMBER_PATTERN = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

logger = logging.getLogger(__name__)


def local_name(tag: str) -> str:
    """去掉 {namespace} 前缀后的标签名"""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


@dataclass(frozen=True)
class BoundingFrame:
    """绘图坐标框 (viewBox)"""
    min_x: float
    min_y: float
    width: float
    height: float
    raw: str

    @classmethod
    def parse(cls, value: Optional[str]) -> "BoundingFrame":
        """
        从viewBox属性文本解析坐标框

        Args:
            value (str): viewBox属性值

        Returns:
            BoundingFrame: 坐标框
        """
        if value is None or not value.strip():
            raise MissingViewportError("SVG is missing the required viewBox attribute.")

        numbers = _NUMBER_PATTERN.findall(value)
        if len(numbers) != 4:
            raise MissingViewportError(
                f"SVG viewBox '{value}' does not contain four numbers."
            )

        min_x, min_y, width, height = (float(n) for n in numbers)
        return cls(min_x, min_y, width, height, raw=value)

    def __str__(self):
        return self.raw


@dataclass(frozen=True)
class Drawing:
    """解析后的绘图"""
    frame: BoundingFrame
    full_markup: str
    strokes: Tuple[str, ...]

    @property
    def stroke_count(self) -> int:
        return len(self.strokes)


def serialize_element(element: ET.Element) -> str:
    """
    序列化单个元素为独立的标记片段（不包含尾部文本）

    Args:
        element (ET.Element): XML元素

    Returns:
        str: 元素的完整外层标记
    """
    tail = element.tail
    element.tail = None
    try:
        return ET.tostring(element, encoding="unicode")
    finally:
        element.tail = tail


class SvgStrokeParser:
    """SVG笔画解析器"""

    def __init__(self, stroke_tags: Iterable[str] = DEFAULT_STROKE_TAGS):
        """
        初始化解析器

        Args:
            stroke_tags (Iterable[str]): 视为笔画的元素标签名
        """
        self.stroke_tags = tuple(stroke_tags)

    def parse(self, raw_markup: str) -> Drawing:
        """
        解析SVG文本

        Args:
            raw_markup (str): 原始SVG内容

        Returns:
            Drawing: 坐标框和按文档顺序排列的笔画
        """
        if raw_markup is None or not raw_markup.strip():
            raise EmptyInputError("The provided SVG content is empty.")

        try:
            root = ET.fromstring(raw_markup.strip())
        except ET.ParseError as e:
            raise MalformedMarkupError(
                f"The file is not a valid SVG or could not be processed: {e}"
            ) from e

        svg_element = self._find_svg_element(root)
        if svg_element is None:
            raise MalformedMarkupError("No <svg> element found in the provided content.")

        frame = BoundingFrame.parse(svg_element.get("viewBox"))

        strokes = tuple(
            serialize_element(element)
            for element in svg_element.iter()
            if local_name(element.tag) in self.stroke_tags
        )

        if not strokes:
            raise NoStrokesError(
                "SVG must contain at least one <path> element. Vectorization might "
                "have failed for this image, or the SVG is not structured as required."
            )

        logger.debug(f"Parsed {len(strokes)} strokes, viewBox={frame.raw}")

        return Drawing(frame=frame, full_markup=raw_markup, strokes=strokes)

    @staticmethod
    def _find_svg_element(root: ET.Element) -> Optional[ET.Element]:
        """查找第一个<svg>元素（根元素优先）"""
        for element in root.iter():
            if local_name(element.tag) == "svg":
                return element
        return None


def parse_svg(raw_markup: str, stroke_tags: Iterable[str] = DEFAULT_STROKE_TAGS) -> Drawing:
    """
    便捷函数：解析SVG文本为Drawing

    Args:
        raw_markup (str): 原始SVG内容
        stroke_tags (Iterable[str]): 视为笔画的元素标签名

    Returns:
        Drawing: 解析结果
    """
    return SvgStrokeParser(stroke_tags).parse(raw_markup)
