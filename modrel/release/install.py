"""Local installation of trial releases."""

from __future__ import annotations

import shutil
from collections.abc import Mapping
from pathlib import Path

from modrel.core.config import InstallConfig
from modrel.core.result import Err, Ok, Result
from modrel.platform.paths import expand_user_path, user_data_dir
from modrel.release.errors import ReleaseError

INSTALL_DIR_ENV = "MODREL_INSTALL_DIR"

MODS_DIRNAME = "mods"


def resolve_install_dir(
    install: InstallConfig, env: Mapping[str, str]
) -> Result[Path, ReleaseError]:
    """Where trial archives go.

    Precedence: MODREL_INSTALL_DIR, then [install].dir, then the runtime's
    per-user data directory + `mods/` when [install].runtime is set.
    """
    override = env.get(INSTALL_DIR_ENV, "").strip()
    if override:
        return Ok(expand_user_path(override))
    if install.dir:
        return Ok(expand_user_path(install.dir))
    if install.runtime:
        return Ok(user_data_dir(install.runtime) / MODS_DIRNAME)
    return Err(
        ReleaseError(
            kind="invalid_input",
            message="no install directory for trial releases",
            hint=f"Set {INSTALL_DIR_ENV}, or [install].dir / [install].runtime in modrel.toml",
        )
    )


def install_archive(archive: Path, install_dir: Path) -> Result[Path, ReleaseError]:
    """Copy the archive into `install_dir`, creating it if needed.

    An archive of the same name already there is replaced.
    """
    dst = install_dir / archive.name
    try:
        install_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(archive, dst)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"failed to install archive: {e}",
                hint=str(install_dir),
            )
        )
    return Ok(dst)
