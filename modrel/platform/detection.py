"""Operating system detection.

Only the platform family matters here: it decides where a runtime keeps its
per-user data directory (and therefore its `mods/` folder for trial installs).
"""

from __future__ import annotations

import sys as _sys
from enum import Enum, auto
from functools import lru_cache

__all__ = ["Platform", "detect_platform"]


class Platform(Enum):
    LINUX = auto()
    MACOS = auto()
    WINDOWS = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()


@lru_cache(maxsize=1)
def detect_platform() -> Platform:
    """Detect the current operating system from `sys.platform`.

    Unknown platforms get the XDG layout, like Linux.
    """
    if _sys.platform.startswith("linux"):
        return Platform.LINUX
    if _sys.platform == "darwin":
        return Platform.MACOS
    if _sys.platform in ("win32", "cygwin"):
        return Platform.WINDOWS
    return Platform.UNKNOWN
