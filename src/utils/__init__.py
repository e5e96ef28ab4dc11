"""Shared utilities for configuration, logging, and retrying remote calls"""

from src.utils.logging_config import configure_logging, configure_logging_from_config
from src.utils.retry import exponential_backoff_retry

__all__ = ["configure_logging", "configure_logging_from_config", "exponential_backoff_retry"]
