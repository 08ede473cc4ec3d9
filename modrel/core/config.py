"""Typed configuration loading and access.

Release settings live in `modrel.toml` at the repository root. Every key is
optional; a repository without the file releases with the defaults below.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "InstallConfig",
    "ModuleConfig",
    "ReleaseConfig",
    "ReleaseSettings",
    "load_config",
    "load_repo_config",
]

CONFIG_FILENAME = "modrel.toml"

# Placeholder expanded to the module name in [module] paths.
MODULE_PLACEHOLDER = "{module}"

DEFAULT_VERSION_FILE = "VERSION"
DEFAULT_RELEASE_DIR = "release"
DEFAULT_CHANGELOG_FILE = "CHANGELOG.md"
DEFAULT_VERSION_TOKEN = "@VERSION@"
DEFAULT_ARCHIVE_EXTENSION = ".mod"
DEFAULT_ARCHIVE_EXCLUDE: tuple[str, ...] = (".gitignore",)
DEFAULT_KEEP: tuple[str, ...] = (".gitignore",)

DEFAULT_SOURCE = "{module}.lua"
DEFAULT_MANIFEST = "info.json"
DEFAULT_ASSETS: tuple[str, ...] = ("banner.png", "icon.png")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseSettings:
    """The [release] table: where release state lives in the repository."""

    version_file: str = DEFAULT_VERSION_FILE
    release_dir: str = DEFAULT_RELEASE_DIR
    changelog_file: str = DEFAULT_CHANGELOG_FILE
    version_token: str = DEFAULT_VERSION_TOKEN
    archive_extension: str = DEFAULT_ARCHIVE_EXTENSION
    archive_exclude: tuple[str, ...] = DEFAULT_ARCHIVE_EXCLUDE
    keep: tuple[str, ...] = DEFAULT_KEEP
    trial_preflight: bool = False


@dataclass(frozen=True, slots=True)
class ModuleConfig:
    """The [module] table: the files that make up a release payload.

    Paths are relative to the repository root and may contain `{module}`.
    An empty `templated` means "source and manifest".
    """

    source: str = DEFAULT_SOURCE
    manifest: str = DEFAULT_MANIFEST
    assets: tuple[str, ...] = DEFAULT_ASSETS
    templated: tuple[str, ...] = ()

    def source_for(self, module_name: str) -> str:
        return self.source.replace(MODULE_PLACEHOLDER, module_name)

    def manifest_for(self, module_name: str) -> str:
        return self.manifest.replace(MODULE_PLACEHOLDER, module_name)

    def assets_for(self, module_name: str) -> tuple[str, ...]:
        return tuple(a.replace(MODULE_PLACEHOLDER, module_name) for a in self.assets)

    def templated_for(self, module_name: str) -> tuple[str, ...]:
        if not self.templated:
            return (self.source_for(module_name), self.manifest_for(module_name))
        return tuple(t.replace(MODULE_PLACEHOLDER, module_name) for t in self.templated)


@dataclass(frozen=True, slots=True)
class InstallConfig:
    """The [install] table: where trial releases are copied.

    Values are user-provided paths. `dir` may contain `~` and environment
    variables. `runtime` names the application whose per-OS data directory
    holds a `mods/` folder.
    """

    dir: str | None = None
    runtime: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Main configuration container."""

    release: ReleaseSettings = field(default_factory=ReleaseSettings)
    module: ModuleConfig = field(default_factory=ModuleConfig)
    install: InstallConfig = field(default_factory=InstallConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ReleaseConfig:
        """Create config from a mapping (parsed TOML)."""
        release: StrDict = get_table(data, "release") or {}
        module: StrDict = get_table(data, "module") or {}
        install: StrDict = get_table(data, "install") or {}

        extension = get_str(release, "archive_extension") or DEFAULT_ARCHIVE_EXTENSION
        if not extension.startswith("."):
            extension = "." + extension
        if extension.lower() == ".zip":
            raise ValueError("archive_extension must not be .zip")

        exclude = get_str_list(release, "archive_exclude")
        keep = get_str_list(release, "keep")
        assets = get_str_list(module, "assets")

        return cls(
            release=ReleaseSettings(
                version_file=get_str(release, "version_file") or DEFAULT_VERSION_FILE,
                release_dir=get_str(release, "release_dir") or DEFAULT_RELEASE_DIR,
                changelog_file=get_str(release, "changelog_file") or DEFAULT_CHANGELOG_FILE,
                version_token=get_str(release, "version_token") or DEFAULT_VERSION_TOKEN,
                archive_extension=extension,
                archive_exclude=DEFAULT_ARCHIVE_EXCLUDE if exclude is None else exclude,
                keep=DEFAULT_KEEP if keep is None else keep,
                trial_preflight=bool(get_bool(release, "trial_preflight")),
            ),
            module=ModuleConfig(
                source=get_str(module, "source") or DEFAULT_SOURCE,
                manifest=get_str(module, "manifest") or DEFAULT_MANIFEST,
                assets=DEFAULT_ASSETS if assets is None else assets,
                templated=get_str_list(module, "templated") or (),
            ),
            install=InstallConfig(
                dir=get_str(install, "dir"),
                runtime=get_str(install, "runtime"),
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to modrel.toml

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ReleaseConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_repo_config(
    repository_root: Path, explicit: Path | None = None
) -> Result[ReleaseConfig, ConfigError]:
    """Load the repository's config, or defaults when it has none.

    An explicit path must exist; the implicit `modrel.toml` is optional.
    """
    if explicit is not None:
        return load_config(explicit)

    path = repository_root / CONFIG_FILENAME
    if not path.exists():
        return Ok(ReleaseConfig())
    return load_config(path)
