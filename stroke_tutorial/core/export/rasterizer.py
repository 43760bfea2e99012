# -*- coding: utf-8 -*-
"""
栅格化模块

将SVG场景渲染为PNG/WebP图像或PIL图像
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from PIL import Image

from ..errors import RasterizationError
from .resources import ExportResources

MIME_EXTENSIONS = {
    'image/png': 'png',
    'image/webp': 'webp',
    'image/gif': 'gif',
    'image/svg+xml': 'svg',
}

Color = Union[str, Tuple[int, int, int]]


@dataclass(frozen=True)
class RasterImage:
    """栅格化结果"""
    data: bytes
    mime_type: str
    width: int
    height: int

    @property
    def extension(self) -> str:
        return MIME_EXTENSIONS.get(self.mime_type, 'bin')


class Rasterizer:
    """SVG栅格化器"""

    def __init__(self, resources: ExportResources):
        """
        初始化栅格化器

        Args:
            resources (ExportResources): 导出资源句柄
        """
        self.resources = resources
        self.logger = logging.getLogger(__name__)

    def render(self, svg: str, width: int, height: int, image_format: str = 'png') -> RasterImage:
        """
        渲染为编码后的图像

        请求的格式不受支持时使用PNG，调用方应根据mime_type确定扩展名

        Args:
            svg (str): SVG文档
            width (int): 输出宽度
            height (int): 输出高度
            image_format (str): 'png' 或 'webp'

        Returns:
            RasterImage: 渲染结果（背景透明）
        """
        image_format = image_format.lower()
        if image_format not in ('png', 'webp'):
            raise RasterizationError(f"Unsupported raster format: {image_format}", image_format)

        if image_format == 'webp' and not self.resources.webp_supported:
            image_format = 'png'

        png_data = self._svg_to_png(svg, width, height)
        if image_format == 'png':
            return RasterImage(png_data, 'image/png', width, height)

        buffer = io.BytesIO()
        with self._open_surface(png_data) as surface:
            surface.save(buffer, format='WEBP', lossless=True)
        return RasterImage(buffer.getvalue(), 'image/webp', width, height)

    def render_image(self, svg: str, width: int, height: int,
                     background: Optional[Color] = None) -> Image.Image:
        """
        渲染为PIL图像

        Args:
            svg (str): SVG文档
            width (int): 输出宽度
            height (int): 输出高度
            background (str | tuple, optional): 背景色，None时保留透明通道

        Returns:
            Image.Image: RGBA（无背景）或RGB（有背景）图像
        """
        png_data = self._svg_to_png(svg, width, height)

        with self._open_surface(png_data) as surface:
            if background is None:
                return surface.copy()

            # 每帧使用新的画布，避免残留上一帧的像素
            canvas = Image.new('RGB', (width, height), background)
            canvas.paste(surface, (0, 0), mask=surface.getchannel('A'))
            return canvas

    def _open_surface(self, png_data: bytes) -> Image.Image:
        try:
            surface = Image.open(io.BytesIO(png_data))
            surface.load()
        except Exception as e:
            raise RasterizationError(f"Could not decode rendered frame: {e}") from e

        if surface.mode != 'RGBA':
            converted = surface.convert('RGBA')
            surface.close()
            return converted
        return surface

    def _svg_to_png(self, svg: str, width: int, height: int) -> bytes:
        try:
            import cairosvg
        except (ImportError, OSError) as e:
            raise RasterizationError(
                "cairosvg is not available. Please install it with: pip install cairosvg"
            ) from e

        try:
            return cairosvg.svg2png(
                bytestring=svg.encode('utf-8'),
                output_width=width,
                output_height=height,
            )
        except Exception as e:
            self.logger.error(f"Error rasterizing SVG at {width}x{height}: {e}")
            raise RasterizationError(f"Could not rasterize frame: {e}") from e
