"""结构化日志系统

基于 structlog 的结构化日志记录器，输出到标准错误流或日志文件。
命令行的 -v / -q 选项通过 verbosity_to_level 映射为日志级别。"""

import logging
import sys
import time
import uuid
import contextvars
from pathlib import Path
from typing import Any, Dict, Optional

import structlog


ROOT_LOGGER_NAME = "linker"

# 当前操作的链路 ID
_operation_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    'operation_id', default=""
)


class LoggerConfig:
    """日志配置类"""

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        level: str = "WARNING",
        json_output: bool = False,
        console_output: bool = True,
    ):
        """初始化日志配置
        Args:
            log_dir: 日志目录，如果为 None 则不写入文件
            level: 日志级别 (DEBUG, INFO, WARNING, ERROR)
            json_output: 是否输出 JSON 格式
            console_output: 是否输出到标准错误流
        """
        self.log_dir = Path(log_dir).expanduser() if log_dir else None
        self.level = level.upper()
        self.json_output = json_output
        self.console_output = console_output


class _StderrHandler(logging.StreamHandler):
    """始终写入当前的 sys.stderr"""

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def verbosity_to_level(verbose: int = 0, quiet: bool = False, base: str = "WARNING") -> str:
    """将命令行的详细程度换算为日志级别

    Args:
        verbose: -v 出现的次数
        quiet: 是否只输出错误
        base: 未指定 -v 时的级别

    Returns:
        日志级别名称
    """
    if quiet:
        return "ERROR"
    levels = ["ERROR", "WARNING", "INFO", "DEBUG"]
    try:
        start = levels.index(base.upper())
    except ValueError:
        start = 1
    return levels[min(start + verbose, len(levels) - 1)]


def _add_operation_id(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """把当前操作 ID 附加到日志事件"""
    operation_id = _operation_id.get()
    if operation_id:
        event_dict.setdefault('operation_id', operation_id)
    return event_dict


def configure_logger(config: Optional[LoggerConfig] = None) -> LoggerConfig:
    """配置全局日志系统

    重复调用会替换之前安装的处理器。

    Args:
        config: 日志配置对象

    Returns:
        实际生效的配置
    """
    global _configured_with
    config = config or LoggerConfig()

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if config.console_output:
        root.addHandler(_StderrHandler())

    if config.log_dir:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        root.addHandler(logging.FileHandler(config.log_dir / "linker.log", encoding="utf-8"))

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    for handler in root.handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))

    root.setLevel(getattr(logging, config.level, logging.WARNING))
    root.propagate = False

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _add_operation_id,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
            if config.json_output
            else structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    _configured_with = config
    return config


class Logger:
    """结构化日志记录器

    对 structlog 的薄封装，日志器名称统一挂在 linker 命名空间下。
    """

    def __init__(self, name: str = ROOT_LOGGER_NAME):
        if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        self.name = name
        self.logger = structlog.get_logger(name)

    def debug(self, event: str, **kwargs) -> None:
        self.logger.debug(event, **kwargs)

    def info(self, event: str, **kwargs) -> None:
        self.logger.info(event, **kwargs)

    def warning(self, event: str, **kwargs) -> None:
        self.logger.warning(event, **kwargs)

    def error(self, event: str, **kwargs) -> None:
        self.logger.error(event, **kwargs)


class OperationScope:
    """操作范围上下文管理器

    记录操作的开始、结束、耗时和异常，异常会继续传播。
    """

    def __init__(
        self,
        operation_name: str,
        logger: Optional[Logger] = None,
        operation_id: Optional[str] = None,
        **context
    ):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.operation_id = operation_id or uuid.uuid4().hex[:12]
        self.context = context
        self.status = "pending"
        self.duration_ms: Optional[int] = None
        self._start = 0.0
        self._token = None

    def __enter__(self) -> 'OperationScope':
        self._token = _operation_id.set(self.operation_id)
        self._start = time.monotonic()
        self.status = "running"
        self.logger.info(f"{self.operation_name}_started", **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.duration_ms = int((time.monotonic() - self._start) * 1000)
        if exc_type is not None:
            self.status = "failure"
            self.logger.error(
                f"{self.operation_name}_failed",
                duration_ms=self.duration_ms,
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                **self.context
            )
        else:
            self.status = "success"
            self.logger.info(
                f"{self.operation_name}_succeeded",
                duration_ms=self.duration_ms,
                **self.context
            )
        if self._token is not None:
            _operation_id.reset(self._token)
            self._token = None
        return False


_configured_with: Optional[LoggerConfig] = None
_loggers: Dict[str, Logger] = {}


def get_logger(name: str = ROOT_LOGGER_NAME) -> Logger:
    """获取日志记录器实例

    首次调用时以默认配置初始化日志系统。

    Args:
        name: 日志记录器名称

    Returns:
        日志记录器实例
    """
    if _configured_with is None:
        configure_logger()

    if name not in _loggers:
        _loggers[name] = Logger(name)
    return _loggers[name]
