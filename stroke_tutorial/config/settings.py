# -*- coding: utf-8 -*-
"""
配置设置模块

定义笔画教程构建与导出的各种参数和配置
"""

import logging
import os
import yaml
from typing import Dict, Any, Optional

from ..core.animation import FinalFrameOverride, DEFAULT_HOLD_MS
from ..core.export import ExportSettings
from ..core.step_merging import StepOptions

logger = logging.getLogger(__name__)

SECTIONS = ('steps', 'export', 'colors', 'video', 'gif', 'logging')


class Config:
    """
    配置管理类

    管理所有参数配置，支持从YAML文件加载和默认值
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        初始化配置

        Args:
            config_path (str, optional): 配置文件路径
        """
        # 设置默认配置
        self._set_default_config()

        # 如果提供了配置文件路径，则加载配置
        if config_path and os.path.exists(config_path):
            self._load_config_file(config_path)

    def _set_default_config(self):
        """
        设置默认配置参数
        """
        # 步骤合并参数
        self.steps = {
            'merge_enabled': False,  # 是否合并笔画
            'max_steps': 20,         # 最大步骤数 (1-20)
        }

        # 导出参数
        self.export = {
            'frame_delay_ms': 150,   # 每步停留时间(毫秒)
            'output_width': 850,     # 输出宽度
            'output_height': 850,    # 输出高度
            'final_hold_ms': DEFAULT_HOLD_MS,  # 最终帧停留时间(毫秒)
            'name': None,            # 文件名前缀，None时使用输入文件名
        }

        # 颜色参数
        self.colors = {
            'done': '#000000',         # 已完成步骤
            'in_progress': '#FF0000',  # 当前步骤
        }

        # 视频参数
        self.video = {
            'fps': 30,                 # 帧率
            'codec': 'mp4v',           # FourCC编码
            'background': '#FFFFFF',   # 背景颜色
        }

        # GIF参数
        self.gif = {
            'key_color': '#FF00FF',    # 透明关键色
        }

        # 日志参数
        self.logging = {
            'console_level': 'INFO',
            'file_level': 'DEBUG',
            'log_dir': None,           # None时不写日志文件
            'use_colors': True,
        }

    def _load_config_file(self, config_path: str):
        """
        从YAML文件加载配置

        Args:
            config_path (str): 配置文件路径
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}

            if not isinstance(config_data, dict):
                raise ValueError("top level of the config file must be a mapping")

            # 更新配置
            self._update_config(config_data)

        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config file {config_path}: {e}. Using defaults")

    def _update_config(self, config_data: Dict[str, Any]):
        """
        更新配置数据

        Args:
            config_data (dict): 新的配置数据
        """
        for section, values in config_data.items():
            if hasattr(self, section) and isinstance(getattr(self, section), dict) \
                    and isinstance(values, dict):
                getattr(self, section).update(values)
            else:
                setattr(self, section, values)

    def get(self, section: str, key: str = None, default=None):
        """
        获取配置值

        Args:
            section (str): 配置段名
            key (str, optional): 配置键名
            default: 默认值

        Returns:
            配置值
        """
        if not hasattr(self, section):
            return default

        section_config = getattr(self, section)

        if key is None:
            return section_config

        if isinstance(section_config, dict):
            return section_config.get(key, default)
        else:
            return default

    def set(self, section: str, key: str, value):
        """
        设置配置值

        Args:
            section (str): 配置段名
            key (str): 配置键名
            value: 配置值
        """
        if not hasattr(self, section):
            setattr(self, section, {})

        section_config = getattr(self, section)
        if isinstance(section_config, dict):
            section_config[key] = value
        else:
            setattr(self, section, {key: value})

    def step_options(self) -> StepOptions:
        """根据配置生成步骤合并选项"""
        return StepOptions(
            merge_enabled=bool(self.steps['merge_enabled']),
            max_steps=int(self.steps['max_steps'])
        )

    def export_settings(self) -> ExportSettings:
        """根据配置生成导出设置"""
        return ExportSettings(
            frame_delay_ms=int(self.export['frame_delay_ms']),
            output_width=int(self.export['output_width']),
            output_height=int(self.export['output_height'])
        )

    @property
    def final_hold_ms(self) -> int:
        return int(self.export.get('final_hold_ms', DEFAULT_HOLD_MS))

    def final_override(self, image_path: Optional[str] = None) -> FinalFrameOverride:
        """
        生成最终帧设置

        Args:
            image_path (str, optional): 替换图片路径

        Returns:
            FinalFrameOverride: 最终帧设置
        """
        if image_path:
            return FinalFrameOverride.from_file(image_path, self.final_hold_ms)
        return FinalFrameOverride(hold_ms=self.final_hold_ms)

    def save_config(self, output_path: str):
        """
        保存配置到文件

        Args:
            output_path (str): 输出文件路径
        """
        config_data = {section: getattr(self, section) for section in SECTIONS}

        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config_data, f, default_flow_style=False,
                           allow_unicode=True, indent=2)
        logger.info(f"Config saved to {output_path}")

    def __str__(self):
        """
        返回配置的字符串表示
        """
        config_str = "Configuration Settings:\n"
        for section in SECTIONS:
            config_str += f"\n{section}:\n"
            for key, value in getattr(self, section).items():
                config_str += f"  {key}: {value}\n"
        return config_str


# 创建默认配置实例
default_config = Config()
