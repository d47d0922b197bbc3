"""
cartstore 日志配置

根记录器上挂一个彩色控制台处理器；开启 log_to_file 时再挂一个按大小轮转的
JSON 文件处理器。structlog 经由标准库输出，事务日志以键值对形式携带 operation。
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog
from pythonjsonlogger import jsonlogger

from .config import Settings

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """按级别给 levelname 上色，格式化后还原 record"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        # 同一个 record 还会交给文件处理器
        original = record.levelname
        record.levelname = f"{self.COLORS.get(original, self.RESET)}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _build_handlers(settings: Settings) -> list:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColoredFormatter('%(asctime)s [%(levelname)8s] %(name)s: %(message)s', DATE_FORMAT))
    handlers = [console]

    if settings.log_to_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.log_file_max_size * 1024 * 1024,
            backupCount=settings.log_file_backup_count,
            encoding='utf-8',
        )
        rotating.setFormatter(jsonlogger.JsonFormatter('%(asctime)s %(name)s %(levelname)s %(message)s', DATE_FORMAT))
        handlers.append(rotating)
    return handlers


def setup_logging(settings: Settings) -> None:
    """按配置重建根记录器的处理器并配置 structlog"""
    root = logging.getLogger()
    root.setLevel(settings.log_level)
    root.handlers.clear()
    for handler in _build_handlers(settings):
        root.addHandler(handler)

    renderer = (
        structlog.processors.JSONRenderer() if settings.is_production
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger(__name__).info(
        f"日志已配置: level={settings.log_level}, file={settings.log_file if settings.log_to_file else '-'}"
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LoggerMixin:
    """为类提供以类名命名的 structlog 记录器"""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(self.__class__.__name__)


__all__ = [
    "ColoredFormatter",
    "setup_logging",
    "get_logger",
    "LoggerMixin",
]
