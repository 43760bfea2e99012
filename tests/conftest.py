# -*- coding: utf-8 -*-
"""
测试共用的夹具

包含示例SVG、记录调用顺序的栅格化器和编码器替身
"""

import pytest
from PIL import Image

from stroke_tutorial.core.export import ExportResources, RasterImage
from stroke_tutorial.core.step_merging import Step
from stroke_tutorial.core.stroke_parsing import parse_svg

SIMPLE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">'
    '<path d="M10 10L20 20" stroke="blue" fill="none" />'
    '<path d="M30 30L40 40" stroke="blue" fill="none" />'
    '<path d="M50 50L60 60" stroke="blue" fill="none" />'
    '</svg>'
)


class FakeRasterizer:
    """记录每次渲染请求，不依赖cairo"""

    def __init__(self, webp_supported: bool = True, on_render_image=None):
        self.webp_supported = webp_supported
        self.on_render_image = on_render_image
        self.render_calls = []
        self.image_calls = []

    def render(self, svg, width, height, image_format='png'):
        self.render_calls.append((svg, width, height, image_format))
        if image_format == 'webp' and self.webp_supported:
            return RasterImage(b'WEBP' + svg.encode('utf-8'), 'image/webp', width, height)
        return RasterImage(b'PNG' + svg.encode('utf-8'), 'image/png', width, height)

    def render_image(self, svg, width, height, background=None):
        self.image_calls.append((svg, width, height, background))
        if self.on_render_image is not None:
            self.on_render_image(len(self.image_calls))
        return Image.new('RGB', (width, height), background or 'white')


class RecordingEncoder:
    """按顺序记录帧时长的编码器替身"""

    extension = 'gif'
    mime_type = 'image/gif'

    def __init__(self, *args):
        self.args = args
        self.delays = []
        self.sizes = []
        self.frame_count = 0
        self.finalized = False
        self.closed = False

    def add_frame(self, image, delay_ms):
        self.sizes.append(image.size)
        self.delays.append(delay_ms)
        self.frame_count += 1

    def finalize(self):
        self.finalized = True
        return b'ENCODED:%d' % self.frame_count

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class RecordingVideoEncoder(RecordingEncoder):
    extension = 'mp4'
    mime_type = 'video/mp4'


class EncoderFactory:
    """记录创建的编码器实例"""

    def __init__(self, encoder_class=RecordingEncoder):
        self.encoder_class = encoder_class
        self.instances = []

    def __call__(self, *args):
        encoder = self.encoder_class(*args)
        self.instances.append(encoder)
        return encoder

    @property
    def last(self):
        return self.instances[-1]


@pytest.fixture
def simple_svg() -> str:
    return SIMPLE_SVG


@pytest.fixture
def drawing():
    return parse_svg(SIMPLE_SVG)


@pytest.fixture
def steps(drawing):
    return [Step((stroke,)) for stroke in drawing.strokes]


@pytest.fixture
def resources(tmp_path):
    handle = ExportResources(scratch_root=str(tmp_path))
    yield handle
    handle.close()


@pytest.fixture
def cairo_available():
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError):
        pytest.skip("cairosvg or the native cairo library is not available")
