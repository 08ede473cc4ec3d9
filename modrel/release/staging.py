"""Release payload assembly.

The release directory is rebuilt from nothing on every run:

- `clear` empties it (ignored files included), keeping only fixed entries
  such as the tracked `.gitignore` that keeps the payload out of git
- `stage` copies the module files in and stamps the version into the text ones
- `archive` packs the result into one deterministic ZIP container

Design goals:

- Byte-for-byte reproducible archives (sorted entries, fixed timestamps)
- Project-specific archive extension so the output never collides with
  generic `.zip` tooling
"""

from __future__ import annotations

import shutil
from collections.abc import Collection, Iterable
from fnmatch import fnmatch
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from modrel.core.config import ModuleConfig
from modrel.core.result import Err, Ok, Result
from modrel.platform.files import remove_entry
from modrel.release.errors import ReleaseError

# ZIP cannot represent timestamps before 1980; every entry gets this one.
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
_ZIP_FILE_MODE = 0o644 << 16


def clear(directory: Path, *, keep: Collection[str] = ()) -> Result[None, ReleaseError]:
    """Remove everything in `directory` except top-level names in `keep`.

    Creates the directory if it does not exist.
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
        for entry in sorted(directory.iterdir()):
            if entry.name in keep:
                continue
            remove_entry(entry)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"failed to clear release directory: {e}",
                hint=str(directory),
            )
        )
    return Ok(None)


def collect_release_files(
    repository_root: Path,
    module_name: str,
    module: ModuleConfig,
) -> Result[tuple[list[Path], frozenset[Path]], ReleaseError]:
    """Resolve the configured payload files.

    Returns the files in staging order (source, manifest, assets) and the
    subset that carries the version placeholder.
    """
    rels = [
        module.source_for(module_name),
        module.manifest_for(module_name),
        *module.assets_for(module_name),
    ]
    files = [repository_root / rel for rel in rels]

    missing = [rel for rel, p in zip(rels, files, strict=True) if not p.is_file()]
    if missing:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"release file(s) not found: {', '.join(missing)}",
                hint="Check the [module] table in modrel.toml.",
            )
        )

    names = {f.name for f in files}
    if len(names) != len(files):
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="release files must have distinct file names",
                hint=", ".join(rels),
            )
        )

    templated = frozenset(repository_root / rel for rel in module.templated_for(module_name))
    return Ok((files, templated))


def stage(
    files: Iterable[Path],
    dest_dir: Path,
    *,
    version_token: str,
    version: str,
    templated: Collection[Path] = (),
) -> Result[list[Path], ReleaseError]:
    """Copy `files` into `dest_dir`, stamping the version into templated ones.

    The substitution is a literal, case-sensitive replace of every occurrence
    of `version_token`.
    """
    staged: list[Path] = []
    for src in files:
        dst = dest_dir / src.name
        try:
            if src in templated:
                # Bytes in and out: line endings stay as committed.
                text = src.read_bytes().decode("utf-8")
                dst.write_bytes(text.replace(version_token, version).encode("utf-8"))
            else:
                shutil.copyfile(src, dst)
        except (OSError, UnicodeDecodeError) as e:
            return Err(
                ReleaseError(
                    kind="io_failure",
                    message=f"failed to stage {src.name}: {e}",
                    hint=str(src),
                )
            )
        staged.append(dst)
    return Ok(staged)


def _collect(
    source_dir: Path,
    *,
    exclude_patterns: Collection[str],
    skip: Path,
) -> list[tuple[Path, str]]:
    out: list[tuple[Path, str]] = []
    for p in sorted(source_dir.rglob("*")):
        if p.is_dir() or p == skip:
            continue
        rel = p.relative_to(source_dir).as_posix()
        if any(fnmatch(p.name, pat) or fnmatch(rel, pat) for pat in exclude_patterns):
            continue
        out.append((p, rel))
    return out


def archive(
    source_dir: Path,
    exclude_patterns: Collection[str],
    output_path: Path,
) -> Result[list[str], ReleaseError]:
    """Pack every file under `source_dir` into `output_path`.

    Names matching `exclude_patterns` (fnmatch, against the file name or its
    relative path) are left out, as is `output_path` itself. Returns the
    archive member names.
    """
    try:
        files = _collect(source_dir, exclude_patterns=exclude_patterns, skip=output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with ZipFile(output_path, "w", compression=ZIP_DEFLATED) as zf:
            for src, arc in files:
                info = ZipInfo(arc, date_time=_ZIP_EPOCH)
                info.compress_type = ZIP_DEFLATED
                info.external_attr = _ZIP_FILE_MODE
                zf.writestr(info, src.read_bytes())
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failure",
                message=f"failed to build archive: {e}",
                hint=str(output_path),
            )
        )
    return Ok([arc for _, arc in files])
