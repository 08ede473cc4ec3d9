"""Platform-aware path utilities.

Locates per-user directories that trial releases install into. The
repository-side paths (version file, release directory) come from
`modrel.toml` instead.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from .detection import Platform, detect_platform

__all__ = [
    "expand_user_path",
    "home",
    "user_data_dir",
]


@lru_cache(maxsize=1)
def home() -> Path:
    """Get user's home directory.

    Uses USERPROFILE on Windows, HOME on Unix.
    Falls back to Path.home() which handles edge cases.
    """
    if detect_platform() == Platform.WINDOWS:
        userprofile = os.environ.get("USERPROFILE")
        if userprofile:
            return Path(userprofile)
    else:
        home_env = os.environ.get("HOME")
        if home_env:
            return Path(home_env)

    return Path.home()


def user_data_dir(app_name: str) -> Path:
    """Get the per-user data directory of an application.

    Location:
    - Linux: $XDG_DATA_HOME/<app> or ~/.local/share/<app>
    - macOS: ~/Library/Application Support/<app>
    - Windows: %APPDATA%/<app> or ~/AppData/Roaming/<app>
    """
    platform = detect_platform()
    if platform == Platform.WINDOWS:
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / app_name
        return home() / "AppData" / "Roaming" / app_name

    if platform == Platform.MACOS:
        return home() / "Library" / "Application Support" / app_name

    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data) / app_name
    return home() / ".local" / "share" / app_name


def expand_user_path(raw: str) -> Path:
    """Expand `~` and environment variables in a user-provided path."""
    return Path(os.path.expandvars(os.path.expanduser(raw)))


def clear_caches() -> None:
    """Clear all cached paths.

    Useful for testing when environment variables change.
    """
    home.cache_clear()
    detect_platform.cache_clear()
