"""Utility modules"""

from autotune.utils.logger import LoggerMixin, get_logger, log_context, setup_logging

__all__ = ["LoggerMixin", "get_logger", "log_context", "setup_logging"]
