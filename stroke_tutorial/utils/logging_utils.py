# -*- coding: utf-8 -*-
"""
日志工具

提供日志配置功能
包括彩色控制台输出、轮转文件日志和带上下文的日志记录
"""

import logging
import logging.handlers
import os
import sys
from typing import Any, Dict, List, Optional, Union

import colorama
from colorama import Fore, Back, Style

# 初始化colorama
colorama.init(autoreset=True)

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """
    彩色日志格式化器

    为不同级别的日志添加颜色
    """

    # 颜色映射
    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Back.WHITE + Style.BRIGHT
    }

    def __init__(self, fmt=None, datefmt=None, use_colors=True, stream=None):
        """
        初始化彩色格式化器

        Args:
            fmt (str): 日志格式
            datefmt (str): 日期格式
            use_colors (bool): 是否使用颜色
            stream: 输出流，用于判断是否为终端
        """
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors
        self.stream = stream or sys.stderr

    def format(self, record):
        log_message = super().format(record)

        # 仅在终端中着色
        if self.use_colors and hasattr(self.stream, 'isatty') and self.stream.isatty():
            color = self.COLORS.get(record.levelname)
            if color:
                log_message = f"{color}{log_message}{Style.RESET_ALL}"

        return log_message


class LogManager:
    """
    日志管理器

    创建处理器并将其挂载到应用日志记录器
    """

    def __init__(self):
        self.handlers: Dict[str, logging.Handler] = {}
        self.default_format = DEFAULT_FORMAT
        self.default_date_format = DEFAULT_DATE_FORMAT

    def create_console_handler(self, name: str = 'console',
                               level: Union[str, int] = 'INFO',
                               use_colors: bool = True,
                               format_string: Optional[str] = None) -> logging.Handler:
        """
        创建控制台处理器

        Args:
            name (str): 处理器名称
            level (Union[str, int]): 日志级别
            use_colors (bool): 是否使用颜色
            format_string (Optional[str]): 格式字符串

        Returns:
            logging.Handler: 处理器
        """
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(_to_level(level))

        fmt = format_string or self.default_format
        if use_colors:
            formatter = ColoredFormatter(fmt, self.default_date_format, stream=sys.stderr)
        else:
            formatter = logging.Formatter(fmt, self.default_date_format)
        handler.setFormatter(formatter)

        self.handlers[name] = handler
        return handler

    def create_file_handler(self, name: str, file_path: str,
                            level: Union[str, int] = 'DEBUG',
                            max_bytes: int = 10 * 1024 * 1024,
                            backup_count: int = 5,
                            encoding: str = 'utf-8',
                            format_string: Optional[str] = None) -> logging.Handler:
        """
        创建轮转文件处理器

        Args:
            name (str): 处理器名称
            file_path (str): 文件路径
            level (Union[str, int]): 日志级别
            max_bytes (int): 最大文件大小
            backup_count (int): 备份文件数量
            encoding (str): 文件编码
            format_string (Optional[str]): 格式字符串

        Returns:
            logging.Handler: 处理器
        """
        log_dir = os.path.dirname(file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            file_path, maxBytes=max_bytes, backupCount=backup_count,
            encoding=encoding
        )
        handler.setLevel(_to_level(level))
        handler.setFormatter(logging.Formatter(format_string or self.default_format,
                                               self.default_date_format))

        self.handlers[name] = handler
        return handler

    def create_logger(self, name: str, level: Union[str, int] = 'DEBUG',
                      handlers: Optional[List[str]] = None) -> logging.Logger:
        """
        创建日志记录器

        Args:
            name (str): 日志记录器名称，空字符串表示根记录器
            level (Union[str, int]): 日志级别
            handlers (Optional[List[str]]): 处理器名称列表

        Returns:
            logging.Logger: 日志记录器
        """
        logger = logging.getLogger(name or None)
        logger.setLevel(_to_level(level))

        # 清除现有处理器，避免重复输出
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

        for handler_name in handlers or []:
            if handler_name in self.handlers:
                logger.addHandler(self.handlers[handler_name])

        return logger

    def setup_default_logging(self, log_dir: Optional[str] = None,
                              app_name: str = 'stroke_tutorial',
                              console_level: str = 'INFO',
                              file_level: str = 'DEBUG',
                              use_colors: bool = True) -> logging.Logger:
        """
        设置默认日志配置

        处理器挂载在根记录器上，core/utils 各模块的记录器都会输出

        Args:
            log_dir (Optional[str]): 日志目录，None时不写文件
            app_name (str): 应用名称（日志文件名）
            console_level (str): 控制台日志级别
            file_level (str): 文件日志级别
            use_colors (bool): 是否使用颜色

        Returns:
            logging.Logger: 应用日志记录器
        """
        handler_names = ['console']
        self.create_console_handler('console', console_level, use_colors)

        if log_dir:
            self.create_file_handler('file', os.path.join(log_dir, f'{app_name}.log'), file_level)
            handler_names.append('file')

        self.create_logger('', 'DEBUG', handler_names)
        return logging.getLogger(app_name)


class ContextLogger:
    """
    上下文日志记录器

    在每条日志前加上上下文信息，如 [format=gif slug=cat]
    """

    def __init__(self, logger: logging.Logger, context: Dict[str, Any] = None):
        """
        初始化上下文日志记录器

        Args:
            logger (logging.Logger): 基础日志记录器
            context (Dict[str, Any]): 上下文信息
        """
        self.logger = logger
        self.context = dict(context or {})

    def _log_with_context(self, level: int, msg: str, *args, **kwargs):
        if self.context:
            prefix = ' '.join(f"{key}={value}" for key, value in self.context.items())
            msg = f"[{prefix}] {msg}"
        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log_with_context(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log_with_context(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log_with_context(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log_with_context(logging.ERROR, msg, *args, **kwargs)

    def add_context(self, **kwargs):
        self.context.update(kwargs)


def _to_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper())
    return level


# 便捷函数
def setup_logging(log_dir: Optional[str] = None, app_name: str = 'stroke_tutorial',
                  console_level: str = 'INFO', file_level: str = 'DEBUG',
                  use_colors: bool = True) -> logging.Logger:
    """
    快速设置日志配置

    Args:
        log_dir (Optional[str]): 日志目录
        app_name (str): 应用名称
        console_level (str): 控制台日志级别
        file_level (str): 文件日志级别
        use_colors (bool): 是否使用颜色

    Returns:
        logging.Logger: 应用日志记录器
    """
    log_manager = LogManager()
    return log_manager.setup_default_logging(
        log_dir, app_name, console_level, file_level, use_colors
    )
