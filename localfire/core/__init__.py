"""Core module initialization."""

from .config_manager import ConfigManager, LocalFireConfig, StoreOptions
from .context import MockContext
from .logging_config import setup_logging, get_logger
from .operation_log import OperationLog

__all__ = [
    "ConfigManager",
    "LocalFireConfig",
    "StoreOptions",
    "MockContext",
    "setup_logging",
    "get_logger",
    "OperationLog",
]
