#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
笔画教程构建
主程序入口

将SVG线稿拆分为有序步骤，并导出为图片、动画或压缩包
"""

import sys
import argparse
import time
import json
from pathlib import Path

from .config.settings import Config
from .core.errors import StrokeParseError, ExportError, describe_export_failure
from .core.export import ExportFormat, ExportOrchestrator, ExportResources
from .core.step_merging import build_step_sequence
from .core.stroke_parsing import SvgStrokeParser
from .utils.file_utils import FileManager
from .utils.logging_utils import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='笔画教程构建：将SVG线稿导出为逐步绘制教程')
    parser.add_argument('input_svg', help='输入SVG路径')
    parser.add_argument('--output_dir', '-o', default='output', help='输出目录')
    parser.add_argument('--format', '-f', dest='formats', action='append',
                        choices=[export_format.value for export_format in ExportFormat],
                        help='导出格式，可重复指定（默认gif）')
    parser.add_argument('--merge', action='store_true', help='合并笔画为有限步骤')
    parser.add_argument('--max_steps', type=int, default=None, help='最大步骤数 (1-20)')
    parser.add_argument('--delay', type=int, default=None, help='每步停留时间(毫秒)')
    parser.add_argument('--width', type=int, default=None, help='输出宽度')
    parser.add_argument('--height', type=int, default=None, help='输出高度')
    parser.add_argument('--step', type=int, default=None, help='单图导出的步骤编号（默认最后一步）')
    parser.add_argument('--final_image', default=None, help='最终帧替换图片路径')
    parser.add_argument('--hold_ms', type=int, default=None, help='最终帧停留时间(毫秒)')
    parser.add_argument('--name', default=None, help='文件名前缀（默认使用输入文件名）')
    parser.add_argument('--config', default=None, help='YAML配置文件路径')
    parser.add_argument('--debug', action='store_true', help='调试模式')
    return parser


def apply_arguments(config: Config, args: argparse.Namespace):
    """
    用命令行参数覆盖配置

    Args:
        config (Config): 配置
        args (argparse.Namespace): 命令行参数
    """
    if args.merge:
        config.set('steps', 'merge_enabled', True)
    if args.max_steps is not None:
        config.set('steps', 'max_steps', args.max_steps)
    if args.delay is not None:
        config.set('export', 'frame_delay_ms', args.delay)
    if args.width is not None:
        config.set('export', 'output_width', args.width)
    if args.height is not None:
        config.set('export', 'output_height', args.height)
    if args.hold_ms is not None:
        config.set('export', 'final_hold_ms', args.hold_ms)
    if args.debug:
        config.set('logging', 'console_level', 'DEBUG')


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    formats = args.formats or ['gif']

    # 检查输入文件
    input_path = Path(args.input_svg)
    if not input_path.exists():
        print(f"错误: 输入文件不存在 {input_path}")
        sys.exit(1)

    config = Config(args.config)
    apply_arguments(config, args)
    setup_logging(
        log_dir=config.get('logging', 'log_dir'),
        console_level=config.get('logging', 'console_level', 'INFO'),
        file_level=config.get('logging', 'file_level', 'DEBUG'),
        use_colors=config.get('logging', 'use_colors', True)
    )

    name = args.name or config.get('export', 'name') or input_path.name
    output_dir = Path(args.output_dir)

    print("=" * 60)
    print("笔画教程构建")
    print("=" * 60)
    print(f"输入文件: {args.input_svg}")
    print(f"输出目录: {args.output_dir}")
    print(f"导出格式: {', '.join(formats)}")
    print(f"合并步骤: {config.get('steps', 'merge_enabled')} (最多 {config.get('steps', 'max_steps')} 步)")
    print(f"调试模式: {args.debug}")
    print("=" * 60)

    try:
        step_options = config.step_options()
        settings = config.export_settings()
        final_override = config.final_override(args.final_image)
    except (OSError, ValueError) as e:
        print(f"\n错误: 参数无效 {e}")
        sys.exit(1)

    export_format = formats[0]
    resources = ExportResources.create()
    try:
        # 1. 解析SVG
        print("\n[1/3] 解析笔画...")
        start_time = time.time()
        markup = input_path.read_text(encoding='utf-8')
        drawing = SvgStrokeParser().parse(markup)
        parse_time = time.time() - start_time
        print(f"解析到 {drawing.stroke_count} 个笔画，耗时 {parse_time:.2f}s")

        # 2. 构建步骤
        print("\n[2/3] 构建步骤...")
        start_time = time.time()
        steps = build_step_sequence(drawing.strokes, step_options)
        merge_time = time.time() - start_time
        print(f"生成 {len(steps)} 个步骤 (耗时: {merge_time:.2f}s)")

        # 3. 导出
        print("\n[3/3] 导出...")
        start_time = time.time()
        orchestrator = ExportOrchestrator(
            resources,
            done_color=config.get('colors', 'done'),
            in_progress_color=config.get('colors', 'in_progress'),
            gif_key_color=config.get('gif', 'key_color'),
            video_background=config.get('video', 'background'),
            video_fps=config.get('video', 'fps'),
            video_codec=config.get('video', 'codec'),
            show_progress=args.debug
        )
        file_manager = FileManager(output_dir)

        written = []
        for export_format in formats:
            artifact = orchestrator.export(
                drawing, steps, settings, export_format,
                final_override=final_override,
                current_step=args.step,
                name=name
            )
            path = file_manager.write_bytes(artifact.filename, artifact.data)
            written.append({'format': export_format, 'file': str(path), 'bytes': artifact.size})
            print(f"  {export_format}: {path} ({artifact.size} bytes)")

        export_time = time.time() - start_time
        print(f"导出完成 (耗时: {export_time:.2f}s)")

        # 保存导出统计
        export_stats = {
            'processing_times': {
                'parsing': parse_time,
                'step_merging': merge_time,
                'export': export_time,
                'total': parse_time + merge_time + export_time
            },
            'data_statistics': {
                'stroke_count': drawing.stroke_count,
                'step_count': len(steps),
                'viewbox': drawing.frame.raw
            },
            'artifacts': written
        }
        if args.debug:
            with open(output_dir / 'export_stats.json', 'w', encoding='utf-8') as f:
                json.dump(export_stats, f, ensure_ascii=False, indent=2)

        print("\n" + "=" * 60)
        print("构建完成！")
        print(f"总耗时: {export_stats['processing_times']['total']:.2f}s")
        print(f"输出目录: {output_dir}")
        print("=" * 60)

    except StrokeParseError as e:
        print(f"\n错误: {e}")
        sys.exit(1)
    except ExportError as e:
        print(f"\n错误: {describe_export_failure(e.export_format or export_format, e)}")
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)
    except (OSError, UnicodeDecodeError) as e:
        print(f"\n错误: {e}")
        sys.exit(1)
    finally:
        resources.close()


if __name__ == "__main__":
    main()
