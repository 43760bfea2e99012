# -*- coding: utf-8 -*-
"""
导出编排测试

使用记录调用的栅格化器和编码器替身，验证帧顺序、时长、命名和错误处理
"""

import io
import zipfile

import pytest

from conftest import EncoderFactory, FakeRasterizer, RecordingVideoEncoder
from stroke_tutorial.core.animation import FinalFrameOverride
from stroke_tutorial.core.errors import EncoderError, ExportCancelledError, ExportError, RasterizationError
from stroke_tutorial.core.export import (
    CancellationToken,
    ExportArtifact,
    ExportFormat,
    ExportOrchestrator,
    ExportSettings,
)

SETTINGS = ExportSettings(frame_delay_ms=150, output_width=40, output_height=30)


def zip_names(data: bytes):
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return archive.namelist()


@pytest.fixture
def rasterizer():
    return FakeRasterizer()


@pytest.fixture
def gif_factory():
    return EncoderFactory()


@pytest.fixture
def video_factory():
    return EncoderFactory(RecordingVideoEncoder)


@pytest.fixture
def orchestrator(resources, rasterizer, gif_factory, video_factory):
    return ExportOrchestrator(
        resources,
        rasterizer=rasterizer,
        gif_encoder_factory=gif_factory,
        video_encoder_factory=video_factory,
        video_fps=25,
    )


class TestExportFormat:

    def test_raster_format(self):
        assert ExportFormat.STEP_WEBP.raster_format == "webp"
        assert ExportFormat.ZIP_PNG.raster_format == "png"
        assert ExportFormat.GIF.raster_format is None
        assert ExportFormat.FINAL_ZIP.raster_format is None

    def test_is_animated(self):
        assert ExportFormat.GIF.is_animated
        assert ExportFormat.VIDEO.is_animated
        assert not ExportFormat.ZIP_PNG.is_animated

    def test_unknown_format(self, orchestrator, drawing, steps):
        with pytest.raises(ValueError):
            orchestrator.export(drawing, steps, SETTINGS, "tiff")


class TestExportSettings:

    def test_defaults(self):
        settings = ExportSettings()
        assert (settings.frame_delay_ms, settings.output_width, settings.output_height) == (150, 850, 850)

    @pytest.mark.parametrize("field", ["frame_delay_ms", "output_width", "output_height"])
    def test_rejects_non_positive(self, field):
        with pytest.raises(ValueError):
            ExportSettings(**{field: 0})


class TestStillExports:

    def test_svg_is_full_markup(self, orchestrator, drawing, steps, rasterizer):
        artifact = orchestrator.export(drawing, steps, SETTINGS, ExportFormat.SVG, name="Cat Sketch.svg")
        assert artifact == ExportArtifact("cat-sketch.svg", drawing.full_markup.encode("utf-8"), "image/svg+xml")
        assert rasterizer.render_calls == []

    def test_png_renders_full_markup(self, orchestrator, drawing, steps, rasterizer):
        artifact = orchestrator.export(drawing, steps, SETTINGS, "png", name="cat")
        assert artifact.filename == "cat.png"
        assert rasterizer.render_calls == [(drawing.full_markup, 40, 30, "png")]

    def test_default_name(self, orchestrator, drawing, steps):
        assert orchestrator.export(drawing, steps, SETTINGS, "webp").filename == "drawing.webp"

    def test_step_export_is_cumulative(self, orchestrator, drawing, steps, rasterizer):
        artifact = orchestrator.export(drawing, steps, SETTINGS, "step-png", current_step=2, name="cat")

        svg = rasterizer.render_calls[0][0]
        assert artifact.filename == "cat-step-2.png"
        assert steps[0].markup + steps[1].markup in svg
        assert steps[2].markup not in svg
        assert 'width="40" height="30"' in svg

    def test_step_defaults_to_last(self, orchestrator, drawing, steps):
        artifact = orchestrator.export(drawing, steps, SETTINGS, "step-webp", name="cat")
        assert artifact.filename == "cat-step-3.webp"

    def test_single_step_export(self, orchestrator, drawing, steps, rasterizer):
        artifact = orchestrator.export(drawing, steps, SETTINGS, "single-step-png", current_step=2, name="cat")

        svg = rasterizer.render_calls[0][0]
        assert artifact.filename == "cat-single-step-2.png"
        assert steps[1].markup in svg
        assert steps[0].markup not in svg

    def test_current_step_is_clamped(self, orchestrator, drawing, steps):
        assert orchestrator.export(drawing, steps, SETTINGS, "step-png", current_step=50,
                                   name="cat").filename == "cat-step-3.png"
        assert orchestrator.export(drawing, steps, SETTINGS, "single-step-png", current_step=-1,
                                   name="cat").filename == "cat-single-step-0.png"

    def test_webp_fallback_uses_png_extension(self, resources, drawing, steps):
        orchestrator = ExportOrchestrator(resources, rasterizer=FakeRasterizer(webp_supported=False))
        artifact = orchestrator.export(drawing, steps, SETTINGS, "single-step-webp", current_step=1, name="cat")
        assert artifact.filename == "cat-single-step-1.png"
        assert artifact.mime_type == "image/png"

    def test_final_svg_uses_override(self, orchestrator, drawing, steps):
        override = FinalFrameOverride(b"abc", "image/png")
        artifact = orchestrator.export(drawing, steps, SETTINGS, "final-svg", final_override=override, name="cat")

        assert artifact.filename == "cat-final.svg"
        assert b"data:image/png;base64,YWJj" in artifact.data
        assert b"M10 10L20 20" not in artifact.data

    def test_final_png_without_override(self, orchestrator, drawing, steps, rasterizer):
        artifact = orchestrator.export(drawing, steps, SETTINGS, "final-png", name="cat")
        assert artifact.filename == "cat-final.png"
        assert all(step.markup in rasterizer.render_calls[0][0] for step in steps)


class TestAnimatedExports:

    def test_gif_frame_order_and_delays(self, orchestrator, drawing, steps, rasterizer, gif_factory):
        artifact = orchestrator.export(drawing, steps, SETTINGS, ExportFormat.GIF, name="cat")

        encoder = gif_factory.last
        assert artifact.filename == "cat.gif"
        assert artifact.data == b"ENCODED:4"
        assert encoder.args == (40, 30, "#FF00FF")
        assert encoder.delays == [150, 150, 150, 1000]
        assert encoder.sizes == [(40, 30)] * 4
        assert encoder.finalized and encoder.closed

        svgs = [call[0] for call in rasterizer.image_calls]
        # 第i帧包含前i个步骤，最后一个为高亮色
        for index, svg in enumerate(svgs[:-1], start=1):
            assert svg.count("<path") == index
            assert svg.count('stroke="#FF0000"') == 1
            assert svg.count('stroke="#000000"') == index - 1
        assert svgs[-1].count("<path") == 3
        assert "#FF0000" not in svgs[-1]
        assert all(call[3] == "#FF00FF" for call in rasterizer.image_calls)

    def test_gif_final_frame_override(self, orchestrator, drawing, steps, rasterizer, gif_factory):
        override = FinalFrameOverride(b"abc", "image/png", hold_ms=2500)
        orchestrator.export(drawing, steps, SETTINGS, "gif", final_override=override)

        assert gif_factory.last.delays[-1] == 2500
        assert "<image " in rasterizer.image_calls[-1][0]
        assert "<image " not in rasterizer.image_calls[-2][0]

    def test_override_without_image_keeps_hold(self, orchestrator, drawing, steps, gif_factory):
        orchestrator.export(drawing, steps, SETTINGS, "gif", final_override=FinalFrameOverride(hold_ms=400))
        assert gif_factory.last.delays == [150, 150, 150, 400]

    def test_video_export(self, orchestrator, resources, drawing, steps, rasterizer, video_factory):
        artifact = orchestrator.export(drawing, steps, SETTINGS, "video", name="cat")

        encoder = video_factory.last
        assert artifact.filename == "cat.mp4"
        assert artifact.mime_type == "video/mp4"
        assert encoder.args == (resources.scratch_dir, 40, 30, 25, "mp4v")
        assert encoder.delays == [150, 150, 150, 1000]
        assert all(call[3] == "#FFFFFF" for call in rasterizer.image_calls)

    def test_no_steps_to_animate(self, orchestrator, drawing):
        with pytest.raises(ExportError) as exc_info:
            orchestrator.export(drawing, [], SETTINGS, "gif")
        assert exc_info.value.export_format == "gif"

    def test_cancelled_before_start(self, orchestrator, drawing, steps, rasterizer, gif_factory):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(ExportCancelledError):
            orchestrator.export(drawing, steps, SETTINGS, "gif", cancel_token=token)

        assert rasterizer.image_calls == []
        assert gif_factory.last.closed
        assert not gif_factory.last.finalized

    def test_cancelled_midway(self, resources, drawing, steps, gif_factory):
        token = CancellationToken()

        def cancel_after_second(count):
            if count == 2:
                token.cancel()

        rasterizer = FakeRasterizer(on_render_image=cancel_after_second)
        orchestrator = ExportOrchestrator(resources, rasterizer=rasterizer, gif_encoder_factory=gif_factory)

        with pytest.raises(ExportCancelledError):
            orchestrator.export(drawing, steps, SETTINGS, "gif", cancel_token=token)

        assert len(rasterizer.image_calls) == 2
        assert gif_factory.last.delays == [150, 150]
        assert gif_factory.last.closed

    def test_rasterization_failure_is_tagged(self, resources, drawing, steps, gif_factory):
        class FailingRasterizer(FakeRasterizer):
            def render_image(self, svg, width, height, background=None):
                raise RasterizationError("boom")

        orchestrator = ExportOrchestrator(resources, rasterizer=FailingRasterizer(),
                                          gif_encoder_factory=gif_factory)
        with pytest.raises(RasterizationError) as exc_info:
            orchestrator.export(drawing, steps, SETTINGS, "gif")

        assert exc_info.value.export_format == "gif"
        assert gif_factory.last.closed

    def test_concurrent_export_is_rejected(self, orchestrator, drawing, steps):
        orchestrator._export_lock.acquire()
        try:
            with pytest.raises(ExportError, match="Another export is in progress"):
                orchestrator.export(drawing, steps, SETTINGS, "svg")
        finally:
            orchestrator._export_lock.release()

        assert orchestrator.export(drawing, steps, SETTINGS, "svg").filename == "drawing.svg"

    def test_lock_is_released_after_failure(self, orchestrator, drawing):
        with pytest.raises(ExportError):
            orchestrator.export(drawing, [], SETTINGS, "gif")
        assert not orchestrator._export_lock.locked()

    def test_invalid_video_codec_is_export_error(self, resources, drawing, steps, rasterizer):
        orchestrator = ExportOrchestrator(resources, rasterizer=rasterizer, video_codec="vp9")

        with pytest.raises(ExportError) as exc_info:
            orchestrator.export(drawing, steps, SETTINGS, "video")

        assert isinstance(exc_info.value, EncoderError)
        assert exc_info.value.export_format == "video"
        assert rasterizer.image_calls == []
        assert not orchestrator._export_lock.locked()


class TestArchiveExports:

    def test_step_archive(self, orchestrator, drawing, steps, rasterizer):
        artifact = orchestrator.export(drawing, steps, SETTINGS, "zip-png", name="cat")

        assert artifact.filename == "cat-steps-png.zip"
        assert artifact.mime_type == "application/zip"
        assert zip_names(artifact.data) == [
            "cat-single-step-001.png",
            "cat-single-step-002.png",
            "cat-single-step-003.png",
        ]
        # 每张图片只包含对应步骤
        for index, call in enumerate(rasterizer.render_calls):
            assert steps[index].markup in call[0]
            assert call[0].count("<path") == 1

    def test_step_archive_webp_fallback(self, resources, drawing, steps):
        orchestrator = ExportOrchestrator(resources, rasterizer=FakeRasterizer(webp_supported=False))
        artifact = orchestrator.export(drawing, steps, SETTINGS, "zip-webp", name="cat")

        assert artifact.filename == "cat-steps-webp.zip"
        assert zip_names(artifact.data)[0] == "cat-single-step-001.png"

    def test_step_archive_cancelled(self, orchestrator, drawing, steps):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ExportCancelledError) as exc_info:
            orchestrator.export(drawing, steps, SETTINGS, "zip-png", cancel_token=token)
        assert exc_info.value.export_format == "zip-png"

    def test_final_archive(self, orchestrator, drawing, steps):
        artifact = orchestrator.export(drawing, steps, SETTINGS, "final-zip", name="cat")

        assert artifact.filename == "cat-final.zip"
        assert zip_names(artifact.data) == ["cat-final.svg", "cat-final.png", "cat-final.webp"]

    def test_final_archive_without_webp(self, resources, drawing, steps):
        orchestrator = ExportOrchestrator(resources, rasterizer=FakeRasterizer(webp_supported=False))
        artifact = orchestrator.export(drawing, steps, SETTINGS, "final-zip", name="cat")
        assert zip_names(artifact.data) == ["cat-final.svg", "cat-final.png"]

    def test_archive_failure_becomes_encoder_error(self, resources, drawing, steps):
        class BrokenArchiveManager:
            def build_zip(self, entries):
                raise OSError("disk full")

        orchestrator = ExportOrchestrator(resources, rasterizer=FakeRasterizer(),
                                          archive_manager=BrokenArchiveManager())
        with pytest.raises(EncoderError) as exc_info:
            orchestrator.export(drawing, steps, SETTINGS, "zip-png")
        assert exc_info.value.export_format == "zip-png"
