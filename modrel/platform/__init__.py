"""Platform abstraction layer."""

from .detection import Platform, detect_platform
from .files import atomic_write_text, remove_entry
from .paths import expand_user_path, home, user_data_dir
from .process import ProcessError, run, run_interactive

__all__ = [
    # detection
    "Platform",
    "detect_platform",
    # files
    "atomic_write_text",
    "remove_entry",
    # paths
    "expand_user_path",
    "home",
    "user_data_dir",
    # process
    "ProcessError",
    "run",
    "run_interactive",
]
