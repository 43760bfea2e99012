# -*- coding: utf-8 -*-
"""
动画编码模块

接收按顺序排列的 (帧图像, 时长) 并生成GIF或视频数据
"""

import io
import uuid
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np
from PIL import Image, ImageColor

from ..errors import EncoderError

# 编码器 -> (扩展名, MIME类型)
VIDEO_CONTAINERS = {
    'mp4v': ('mp4', 'video/mp4'),
    'avc1': ('mp4', 'video/mp4'),
    'h264': ('mp4', 'video/mp4'),
    'xvid': ('avi', 'video/x-msvideo'),
    'mjpg': ('avi', 'video/x-msvideo'),
    'vp80': ('webm', 'video/webm'),
    'vp90': ('webm', 'video/webm'),
}


class FrameEncoder:
    """动画编码器基类"""

    extension = 'bin'
    mime_type = 'application/octet-stream'

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.frame_count = 0

    def add_frame(self, image: Image.Image, delay_ms: int):
        raise NotImplementedError

    def finalize(self) -> bytes:
        raise NotImplementedError

    def close(self):
        pass

    def _fit(self, image: Image.Image) -> Image.Image:
        if image.size != (self.width, self.height):
            return image.resize((self.width, self.height))
        return image

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class GifEncoder(FrameEncoder):
    """
    GIF编码器

    帧时长作为元数据写入，不进行实时等待。帧应绘制在不透明的关键色背景上，
    关键色在调色板中被标记为透明。
    """

    extension = 'gif'
    mime_type = 'image/gif'

    def __init__(self, width: int, height: int, key_color: str = '#FF00FF'):
        super().__init__(width, height)
        self.key_rgb = ImageColor.getrgb(key_color)[:3]
        self.frames: List[Image.Image] = []
        self.durations: List[int] = []

    def add_frame(self, image: Image.Image, delay_ms: int):
        """
        添加一帧

        Args:
            image (Image.Image): 帧图像（RGB）
            delay_ms (int): 帧时长（毫秒）
        """
        try:
            frame = self._fit(image.convert('RGB'))
            paletted = frame.convert('P', palette=Image.Palette.ADAPTIVE, colors=256)
        except (OSError, ValueError, TypeError) as e:
            raise EncoderError(f"Could not convert GIF frame: {e}", 'gif') from e

        key_index = self._find_palette_index(paletted, self.key_rgb)
        if key_index is not None:
            paletted.info['transparency'] = key_index

        self.frames.append(paletted)
        self.durations.append(int(delay_ms))
        self.frame_count += 1

    def finalize(self) -> bytes:
        """
        编码所有帧

        Returns:
            bytes: GIF数据
        """
        if not self.frames:
            raise EncoderError("No frames were added to the GIF encoder", 'gif')

        buffer = io.BytesIO()
        try:
            self.frames[0].save(
                buffer,
                format='GIF',
                save_all=True,
                append_images=self.frames[1:],
                duration=self.durations,
                loop=0,
                disposal=2,
                optimize=False
            )
        except (OSError, ValueError) as e:
            raise EncoderError(f"GIF encoding failed: {e}", 'gif') from e

        return buffer.getvalue()

    def close(self):
        for frame in self.frames:
            frame.close()
        self.frames = []

    @staticmethod
    def _find_palette_index(image: Image.Image, rgb) -> Optional[int]:
        palette = image.getpalette() or []
        for index in range(len(palette) // 3):
            if tuple(palette[index * 3:index * 3 + 3]) == tuple(rgb):
                return index
        return None


class VideoEncoder(FrameEncoder):
    """
    视频编码器

    使用固定帧率的OpenCV写入器，通过重复帧表示时长，不进行实时等待
    """

    def __init__(self, output_dir: Path, width: int, height: int,
                 fps: int = 30, codec: str = 'mp4v'):
        """
        初始化视频编码器

        Args:
            output_dir (Path): 临时文件目录
            width (int): 视频宽度
            height (int): 视频高度
            fps (int): 帧率
            codec (str): FourCC编码
        """
        super().__init__(width, height)
        if fps <= 0:
            raise EncoderError("FPS must be positive", 'video')

        self.fps = fps
        self.codec = codec
        self.extension, self.mime_type = VIDEO_CONTAINERS.get(codec.lower(), ('mp4', 'video/mp4'))
        self.output_path = Path(output_dir) / f"{uuid.uuid4().hex}.{self.extension}"
        self.written_frames = 0
        self.video_writer = None

        if len(codec) != 4:
            raise EncoderError(f"Video codec must be a four character code, got '{codec}'", 'video')

        try:
            fourcc = cv2.VideoWriter_fourcc(*codec)
            self.video_writer = cv2.VideoWriter(str(self.output_path), fourcc, fps, (width, height))
        except (cv2.error, TypeError, ValueError) as e:
            raise EncoderError(f"Could not create video writer for codec '{codec}': {e}", 'video') from e

        if not self.video_writer.isOpened():
            self.video_writer.release()
            self.video_writer = None
            raise EncoderError(f"Could not open video writer for codec '{codec}'", 'video')

    def frames_for_delay(self, delay_ms: int) -> int:
        """时长对应的重复帧数（至少一帧）"""
        return max(1, round(delay_ms * self.fps / 1000))

    def add_frame(self, image: Image.Image, delay_ms: int):
        """
        添加一帧

        Args:
            image (Image.Image): 帧图像（RGB）
            delay_ms (int): 帧时长（毫秒）
        """
        if self.video_writer is None:
            raise EncoderError("Video encoder is already finalized", 'video')

        try:
            frame = self._fit(image.convert('RGB'))
            bgr = cv2.cvtColor(np.array(frame), cv2.COLOR_RGB2BGR)

            for _ in range(self.frames_for_delay(delay_ms)):
                self.video_writer.write(bgr)
                self.written_frames += 1
        except (cv2.error, OSError, ValueError, TypeError) as e:
            raise EncoderError(f"Could not write video frame: {e}", 'video') from e
        self.frame_count += 1

    def finalize(self) -> bytes:
        """
        结束编码并读取视频数据

        Returns:
            bytes: 视频文件内容
        """
        if self.video_writer is None:
            raise EncoderError("Video encoder is already finalized", 'video')
        if self.frame_count == 0:
            raise EncoderError("No frames were added to the video encoder", 'video')

        self.video_writer.release()
        self.video_writer = None

        if not self.output_path.exists() or self.output_path.stat().st_size == 0:
            raise EncoderError(f"Video encoder produced no output for codec '{self.codec}'", 'video')

        return self.output_path.read_bytes()

    def close(self):
        if self.video_writer is not None:
            self.video_writer.release()
            self.video_writer = None
        if self.output_path.exists():
            self.output_path.unlink()
