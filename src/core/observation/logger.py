"""
统一日志模块

默认模式：标准输出，作为库被调用时使用，级别由 LOG_LEVEL 控制。
调试模式：setup_logger(log_dir=...) 额外挂上 Rich 控制台和分级日志文件，
用于排查检索/画像合并流程。

每条日志都带 activity_id，同一次检索或抽取合并的日志可以据此串起来:

    from core.observation.logger import get_logger, activity_scope
    logger = get_logger(__name__)

    with activity_scope():
        logger.info("message")
"""
import contextlib
import contextvars
import logging
import os
import sys
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = '%(asctime)s - [%(activity_id)s] - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

# 第三方库只保留 WARNING 及以上
NOISY_LOGGERS = ('urllib3', 'httpx', 'httpcore', 'openai', 'jieba')

NO_ACTIVITY = '-'

# (文件名, handler 级别, 是否只收该级别)
LOG_FILES = (
    ('memory_core.log', logging.DEBUG, False),
    ('memory_core.warning.log', logging.WARNING, True),
    ('memory_core.error.log', logging.ERROR, False),
)

activity_id_var: contextvars.ContextVar[str] = contextvars.ContextVar('activity_id', default=NO_ACTIVITY)


def get_activity_id() -> str:
    return activity_id_var.get()


@contextlib.contextmanager
def activity_scope(activity_id: Optional[str] = None) -> Iterator[str]:
    """在 with 块内设置 activity_id，退出时恢复。

    已经处于某个 activity 中且未显式传入 ID 时沿用外层 ID，
    这样检索内部的子调用和外层调用共用一个 ID。

    Args:
        activity_id: 自定义 ID，不提供则沿用外层 ID 或生成 8 位 UUID

    Yields:
        当前生效的 activity_id
    """
    current = activity_id_var.get()
    if activity_id is None:
        activity_id = current if current != NO_ACTIVITY else uuid.uuid4().hex[:8]
    token = activity_id_var.set(activity_id)
    try:
        yield activity_id
    finally:
        activity_id_var.reset(token)


class ActivityIdFilter(logging.Filter):
    """给日志记录补上 activity_id 字段"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.activity_id = activity_id_var.get()
        return True


class ExactLevelFilter(logging.Filter):
    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno == self.level


def _caller_module(depth: int = 2) -> str:
    return sys._getframe(depth).f_globals.get('__name__', 'unknown')


def log_filename(base_name: str, run_number: Optional[int] = None) -> str:
    """memory_core.log + run 3 -> memory_core_3.log"""
    if run_number is None:
        return base_name
    stem, dot, ext = base_name.partition('.')
    return f"{stem}_{run_number}{dot}{ext}"


class LoggerProvider:
    """日志管理（单例）

    首次实例化时配置根日志器并压低第三方库日志，之后只负责发放 logger
    以及按需挂载调试用的 handler。
    """

    _instance: Optional['LoggerProvider'] = None
    _initialized: bool = False

    def __new__(cls) -> 'LoggerProvider':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if LoggerProvider._initialized:
            return
        level_name = os.getenv('LOG_LEVEL', 'INFO').upper()
        stream = logging.StreamHandler(sys.stdout)
        stream.addFilter(ActivityIdFilter())
        logging.basicConfig(
            level=getattr(logging, level_name, logging.INFO),
            format=LOG_FORMAT,
            handlers=[stream],
        )
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)
        LoggerProvider._initialized = True

    @lru_cache(maxsize=1000)
    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)

    def attach_debug_handlers(
        self,
        logger: logging.Logger,
        log_dir: Path,
        level: int = logging.INFO,
        run_number: Optional[int] = None,
        use_rich: bool = True,
    ) -> logging.Logger:
        """替换 logger 的 handler：一个控制台输出 + LOG_FILES 中的分级文件"""
        for old in list(logger.handlers):
            logger.removeHandler(old)
            old.close()
        logger.setLevel(logging.DEBUG)

        if use_rich:
            console = RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                show_time=False,
                show_path=False,
            )
        else:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(logging.Formatter(LOG_FORMAT))
        console.setLevel(level)
        console.addFilter(ActivityIdFilter())
        logger.addHandler(console)

        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        formatter = logging.Formatter(LOG_FORMAT)
        for base_name, file_level, exact in LOG_FILES:
            handler = logging.FileHandler(log_dir / log_filename(base_name, run_number), encoding='utf-8')
            handler.setLevel(file_level)
            handler.setFormatter(formatter)
            handler.addFilter(ActivityIdFilter())
            if exact:
                handler.addFilter(ExactLevelFilter(file_level))
            logger.addHandler(handler)
        return logger


logger_provider = LoggerProvider()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """获取日志器，推荐在模块顶部 get_logger(__name__) 一次"""
    return logger_provider.get_logger(name or _caller_module())


def setup_logger(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    name: Optional[str] = None,
    run_number: Optional[int] = None,
    use_rich: bool = True,
) -> logging.Logger:
    """配置调试日志

    Args:
        log_dir: 日志目录；为 None 时等同于 get_logger。否则创建：
            - memory_core.log: 所有日志
            - memory_core.warning.log: 仅 WARNING（降级/回退路径）
            - memory_core.error.log: ERROR 及以上
        level: 控制台输出级别
        name: 日志器名称，例如 "retrieval" 覆盖整个检索包
        run_number: 运行编号，文件名变为 memory_core_1.log 等
        use_rich: 控制台是否使用 Rich
    """
    logger = logger_provider.get_logger(name or _caller_module())
    if log_dir is None:
        return logger
    return logger_provider.attach_debug_handlers(logger, log_dir, level, run_number, use_rich)
