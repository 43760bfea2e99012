# -*- coding: utf-8 -*-
"""
笔画解析模块

将SVG文本解析为坐标框和有序的笔画片段
"""

from .svg_parser import (
    SvgStrokeParser,
    BoundingFrame,
    Drawing,
    parse_svg,
    serialize_element,
    local_name,
    SVG_NS,
    XLINK_NS,
)

__all__ = [
    'SvgStrokeParser',
    'BoundingFrame',
    'Drawing',
    'parse_svg',
    'serialize_element',
    'local_name',
    'SVG_NS',
    'XLINK_NS'
]
