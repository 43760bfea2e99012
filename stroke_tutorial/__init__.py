# -*- coding: utf-8 -*-
"""
笔画教程构建

将SVG线稿拆分为有序步骤，并导出为图片、动画或压缩包
"""

__version__ = '1.0.0'
