"""Core types shared by every layer."""

from .config import ConfigError, WtgConfig, load_config
from .errors import ErrorCode, WtgError
from .notices import Notice, Notices
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "ConfigError",
    "WtgConfig",
    "load_config",
    # errors
    "ErrorCode",
    "WtgError",
    # notices
    "Notice",
    "Notices",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
