# -*- coding: utf-8 -*-
"""
导出编排模块

驱动帧合成器遍历步骤，将场景交给栅格化器、动画编码器或压缩包：
1. 单张图片（完整绘图、累积步骤、单个步骤、最终帧）
2. 矢量快照
3. 逐步图片压缩包
4. 视频与GIF动画
5. 最终帧压缩包
"""

import logging
import threading
import zipfile
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence, Union

from tqdm import tqdm

from ..animation import (
    DEFAULT_HOLD_MS,
    DONE_COLOR,
    IN_PROGRESS_COLOR,
    FinalFrameOverride,
    Frame,
    FrameSynthesizer,
    HighlightPolicy,
)
from ..errors import EncoderError, ExportCancelledError, ExportError
from ..step_merging import Step
from ..stroke_parsing import Drawing
from .encoders import FrameEncoder, GifEncoder, VideoEncoder
from .rasterizer import Rasterizer
from .resources import ExportResources
from ...utils.file_utils import ArchiveManager, make_slug, step_filename
from ...utils.logging_utils import ContextLogger


class ExportFormat(Enum):
    """导出格式"""
    SVG = "svg"
    PNG = "png"
    WEBP = "webp"
    STEP_PNG = "step-png"
    STEP_WEBP = "step-webp"
    SINGLE_STEP_PNG = "single-step-png"
    SINGLE_STEP_WEBP = "single-step-webp"
    VIDEO = "video"
    GIF = "gif"
    ZIP_PNG = "zip-png"
    ZIP_WEBP = "zip-webp"
    FINAL_SVG = "final-svg"
    FINAL_PNG = "final-png"
    FINAL_WEBP = "final-webp"
    FINAL_ZIP = "final-zip"

    @property
    def raster_format(self) -> Optional[str]:
        """栅格格式后缀（png/webp），非栅格格式返回None"""
        for suffix in ('png', 'webp'):
            if self.value.endswith(suffix):
                return suffix
        return None

    @property
    def is_animated(self) -> bool:
        return self in (ExportFormat.VIDEO, ExportFormat.GIF)


@dataclass(frozen=True)
class ExportSettings:
    """所有导出格式共用的设置"""
    frame_delay_ms: int = 150
    output_width: int = 850
    output_height: int = 850

    def __post_init__(self):
        for name in ('frame_delay_ms', 'output_width', 'output_height'):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class ExportArtifact:
    """导出产物"""
    filename: str
    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)


class CancellationToken:
    """导出取消标记，在每一步渲染之前检查"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class ExportOrchestrator:
    """导出编排器"""

    def __init__(self, resources: ExportResources,
                 done_color: str = DONE_COLOR,
                 in_progress_color: str = IN_PROGRESS_COLOR,
                 gif_key_color: str = '#FF00FF',
                 video_background: str = '#FFFFFF',
                 video_fps: int = 30,
                 video_codec: str = 'mp4v',
                 show_progress: bool = False,
                 rasterizer: Optional[Rasterizer] = None,
                 archive_manager: Optional[ArchiveManager] = None,
                 gif_encoder_factory: Optional[Callable[..., FrameEncoder]] = None,
                 video_encoder_factory: Optional[Callable[..., FrameEncoder]] = None):
        """
        初始化导出编排器

        Args:
            resources (ExportResources): 进程级资源句柄
            done_color (str): 已完成步骤颜色
            in_progress_color (str): 当前步骤颜色
            gif_key_color (str): GIF透明关键色
            video_background (str): 视频帧背景色
            video_fps (int): 视频帧率
            video_codec (str): 视频FourCC编码
            show_progress (bool): 是否显示进度条
            rasterizer (Rasterizer, optional): 栅格化器
            archive_manager (ArchiveManager, optional): 压缩包生成器
            gif_encoder_factory (Callable, optional): GIF编码器工厂 (width, height, key_color)
            video_encoder_factory (Callable, optional): 视频编码器工厂 (dir, width, height, fps, codec)
        """
        self.resources = resources
        self.done_color = done_color
        self.in_progress_color = in_progress_color
        self.gif_key_color = gif_key_color
        self.video_background = video_background
        self.video_fps = video_fps
        self.video_codec = video_codec
        self.show_progress = show_progress

        self.rasterizer = rasterizer or Rasterizer(resources)
        self.archive_manager = archive_manager or ArchiveManager()
        self.gif_encoder_factory = gif_encoder_factory or GifEncoder
        self.video_encoder_factory = video_encoder_factory or VideoEncoder

        self.logger = logging.getLogger(__name__)
        self._export_lock = threading.Lock()

    def export(self, drawing: Drawing, steps: Sequence[Step], settings: ExportSettings,
               export_format: Union[ExportFormat, str],
               final_override: Optional[FinalFrameOverride] = None,
               current_step: Optional[int] = None,
               name: Optional[str] = None,
               cancel_token: Optional[CancellationToken] = None) -> ExportArtifact:
        """
        导出绘图

        Args:
            drawing (Drawing): 解析后的绘图
            steps (Sequence[Step]): 步骤序列
            settings (ExportSettings): 导出设置
            export_format (ExportFormat | str): 导出格式
            final_override (FinalFrameOverride, optional): 最终帧替换设置
            current_step (int, optional): 当前步骤（单图导出使用），默认最后一步
            name (str, optional): 描述性名称，用于生成文件名
            cancel_token (CancellationToken, optional): 取消标记

        Returns:
            ExportArtifact: 导出产物
        """
        export_format = ExportFormat(export_format)

        slug = make_slug(name)
        log = ContextLogger(self.logger, {'format': export_format.value, 'slug': slug})

        if not self._export_lock.acquire(blocking=False):
            raise ExportError("Another export is in progress", export_format.value)

        try:
            synthesizer = FrameSynthesizer(drawing.frame, self.done_color, self.in_progress_color)
            if current_step is None:
                current_step = len(steps)
            current_step = max(0, min(current_step, len(steps)))

            log.debug(f"Starting export of {len(steps)} steps at "
                      f"{settings.output_width}x{settings.output_height}")

            if export_format is ExportFormat.SVG:
                artifact = ExportArtifact(f"{slug}.svg", drawing.full_markup.encode('utf-8'), 'image/svg+xml')
            elif export_format in (ExportFormat.PNG, ExportFormat.WEBP):
                artifact = self._export_still(drawing.full_markup, settings, export_format.raster_format, slug)
            elif export_format in (ExportFormat.STEP_PNG, ExportFormat.STEP_WEBP):
                frame = synthesizer.synthesize(steps, current_step, HighlightPolicy.NONE)
                artifact = self._export_still(
                    self._sized_svg(frame, settings), settings, export_format.raster_format,
                    f"{slug}-step-{current_step}"
                )
            elif export_format in (ExportFormat.SINGLE_STEP_PNG, ExportFormat.SINGLE_STEP_WEBP):
                frame = synthesizer.single_step(steps, current_step)
                artifact = self._export_still(
                    self._sized_svg(frame, settings), settings, export_format.raster_format,
                    f"{slug}-single-step-{current_step}"
                )
            elif export_format.is_animated:
                artifact = self._export_animation(
                    export_format, steps, synthesizer, settings, final_override, slug, cancel_token, log
                )
            elif export_format in (ExportFormat.ZIP_PNG, ExportFormat.ZIP_WEBP):
                artifact = self._export_step_archive(
                    export_format, steps, synthesizer, settings, slug, cancel_token
                )
            elif export_format is ExportFormat.FINAL_SVG:
                frame = synthesizer.final_frame(steps, final_override)
                artifact = ExportArtifact(f"{slug}-final.svg", frame.to_svg().encode('utf-8'), 'image/svg+xml')
            elif export_format in (ExportFormat.FINAL_PNG, ExportFormat.FINAL_WEBP):
                frame = synthesizer.final_frame(steps, final_override)
                artifact = self._export_still(
                    self._sized_svg(frame, settings), settings, export_format.raster_format, f"{slug}-final"
                )
            else:
                artifact = self._export_final_archive(steps, synthesizer, settings, final_override, slug)

            log.info(f"Exported {artifact.filename} ({artifact.size} bytes)")
            return artifact

        except ExportError as e:
            if e.export_format is None:
                e.export_format = export_format.value
            log.error(f"Export failed: {e}")
            raise
        finally:
            self._export_lock.release()

    def _export_still(self, svg: str, settings: ExportSettings, raster_format: str,
                      basename: str) -> ExportArtifact:
        """
        渲染单张图片

        扩展名取自实际编码格式（WebP不可用时为png）
        """
        raster = self.rasterizer.render(
            svg, settings.output_width, settings.output_height, raster_format
        )
        return ExportArtifact(f"{basename}.{raster.extension}", raster.data, raster.mime_type)

    def _export_animation(self, export_format: ExportFormat, steps: Sequence[Step],
                          synthesizer: FrameSynthesizer, settings: ExportSettings,
                          final_override: Optional[FinalFrameOverride], slug: str,
                          cancel_token: Optional[CancellationToken],
                          log: ContextLogger) -> ExportArtifact:
        """
        导出动画（视频/GIF）

        依次渲染第1..N步的高亮帧，然后追加最终帧并结束编码
        """
        if not steps:
            raise ExportError("There are no steps to animate", export_format.value)

        width, height = settings.output_width, settings.output_height

        if export_format is ExportFormat.GIF:
            encoder = self.gif_encoder_factory(width, height, self.gif_key_color)
            background = self.gif_key_color
        else:
            encoder = self.video_encoder_factory(
                self.resources.scratch_dir, width, height, self.video_fps, self.video_codec
            )
            background = self.video_background

        with encoder:
            indices = range(1, len(steps) + 1)
            if self.show_progress:
                indices = tqdm(indices, desc=f"Rendering {export_format.value} frames")

            for index in indices:
                self._check_cancelled(cancel_token, export_format)
                frame = synthesizer.synthesize(steps, index, HighlightPolicy.HIGHLIGHT_CURRENT)
                self._append_frame(encoder, frame, width, height, background, settings.frame_delay_ms)

            self._check_cancelled(cancel_token, export_format)
            hold_ms = final_override.hold_ms if final_override is not None else DEFAULT_HOLD_MS
            final_frame = synthesizer.final_frame(steps, final_override)
            self._append_frame(encoder, final_frame, width, height, background, hold_ms)

            log.debug(f"Finalizing encoder with {encoder.frame_count} frames")
            data = encoder.finalize()

        return ExportArtifact(f"{slug}.{encoder.extension}", data, encoder.mime_type)

    def _append_frame(self, encoder: FrameEncoder, frame: Frame, width: int, height: int,
                      background: str, delay_ms: int):
        image = self.rasterizer.render_image(frame.to_svg(width, height), width, height, background)
        try:
            encoder.add_frame(image, delay_ms)
        finally:
            image.close()

    def _export_step_archive(self, export_format: ExportFormat, steps: Sequence[Step],
                             synthesizer: FrameSynthesizer, settings: ExportSettings,
                             slug: str, cancel_token: Optional[CancellationToken]) -> ExportArtifact:
        """
        导出逐步图片压缩包

        每张图片仅包含对应步骤本身，不累积
        """
        if not steps:
            raise ExportError("There are no steps to export", export_format.value)

        raster_format = export_format.raster_format
        entries: Dict[str, bytes] = {}

        indices = range(1, len(steps) + 1)
        if self.show_progress:
            indices = tqdm(indices, desc="Rendering step images")

        for index in indices:
            self._check_cancelled(cancel_token, export_format)
            frame = synthesizer.single_step(steps, index)
            raster = self.rasterizer.render(
                self._sized_svg(frame, settings),
                settings.output_width, settings.output_height, raster_format
            )
            entries[step_filename(slug, 'single-step', index, raster.extension, width=3)] = raster.data

        data = self._build_archive(entries, export_format)
        return ExportArtifact(f"{slug}-steps-{raster_format}.zip", data, 'application/zip')

    def _export_final_archive(self, steps: Sequence[Step], synthesizer: FrameSynthesizer,
                              settings: ExportSettings,
                              final_override: Optional[FinalFrameOverride],
                              slug: str) -> ExportArtifact:
        """
        导出最终帧压缩包：SVG + PNG + WebP（不支持时跳过，PNG已包含）
        """
        frame = synthesizer.final_frame(steps, final_override)
        entries: Dict[str, bytes] = {f"{slug}-final.svg": frame.to_svg().encode('utf-8')}
        sized_svg = self._sized_svg(frame, settings)

        for raster_format in ('png', 'webp'):
            raster = self.rasterizer.render(
                sized_svg, settings.output_width, settings.output_height, raster_format
            )
            filename = f"{slug}-final.{raster.extension}"
            if filename not in entries:
                entries[filename] = raster.data

        data = self._build_archive(entries, ExportFormat.FINAL_ZIP)
        return ExportArtifact(f"{slug}-final.zip", data, 'application/zip')

    def _build_archive(self, entries: Dict[str, bytes], export_format: ExportFormat) -> bytes:
        try:
            return self.archive_manager.build_zip(entries)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise EncoderError(f"Could not create archive: {e}", export_format.value) from e

    @staticmethod
    def _sized_svg(frame: Frame, settings: ExportSettings) -> str:
        return frame.to_svg(settings.output_width, settings.output_height)

    @staticmethod
    def _check_cancelled(cancel_token: Optional[CancellationToken], export_format: ExportFormat):
        if cancel_token is not None and cancel_token.is_cancelled:
            raise ExportCancelledError("Export was cancelled", export_format.value)
