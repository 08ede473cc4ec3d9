"""Core types: results, exit codes, configuration."""

from .config import ConfigError, ReleaseConfig, load_config, load_repo_config
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "ReleaseConfig",
    "load_config",
    "load_repo_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
