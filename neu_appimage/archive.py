"""Release archive extraction and the per-variant entry filters."""

from __future__ import annotations

import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Callable, List

from loguru import logger

from .build_config import BuildContext, BuildVariant
from .errors import ExtractError

EntryFilter = Callable[[str], bool]

RESOURCES_BUNDLE = "resources.neu"


def skip_foreign_binaries(app_id: str) -> EntryFilter:
    """Keep everything except Windows executables and macOS binaries."""
    mac_prefix = f"{app_id}-mac_"

    def keep(name: str) -> bool:
        entry = PurePosixPath(name)
        return entry.suffix.lower() != ".exe" and not entry.name.startswith(mac_prefix)

    return keep


def only_linux_binary(executable_name: str) -> EntryFilter:
    """Keep the arch-specific executable and the resource bundle, nothing else."""
    wanted = {executable_name, RESOURCES_BUNDLE}

    def keep(name: str) -> bool:
        return name in wanted

    return keep


def entry_filter_for(context: BuildContext) -> EntryFilter:
    if context.variant is BuildVariant.APPIMAGETOOL:
        return only_linux_binary(context.executable_name)
    return skip_foreign_binaries(context.app_id)


def extract_archive(archive_path: Path, destination: Path, keep: EntryFilter) -> List[Path]:
    """Extract the entries of ``archive_path`` accepted by ``keep`` into ``destination``.

    Unix permission bits stored in the archive are restored. Raises
    :class:`ExtractError` if the archive is missing, unreadable or no entry
    passed the filter.
    """
    if not archive_path.is_file():
        raise ExtractError(f"Release archive not found: {archive_path}")

    extracted: List[Path] = []
    try:
        with zipfile.ZipFile(archive_path) as archive:
            for info in archive.infolist():
                if info.is_dir() or not keep(info.filename):
                    continue
                target = Path(archive.extract(info, destination))
                mode = (info.external_attr >> 16) & 0o7777
                if mode:
                    target.chmod(mode)
                extracted.append(target)
    except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as exc:
        raise ExtractError(f"{archive_path.name} could not be read: {exc}") from exc
    except OSError as exc:
        raise ExtractError(f"Failed to extract {archive_path.name}: {exc}") from exc

    if not extracted:
        raise ExtractError(f"No usable entries found in {archive_path.name}")
    logger.debug("Extracted {} entries from {}", len(extracted), archive_path.name)
    return extracted


__all__ = [
    "EntryFilter",
    "entry_filter_for",
    "extract_archive",
    "only_linux_binary",
    "skip_foreign_binaries",
]
