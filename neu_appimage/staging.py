"""AppDir creation and removal."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from .build_config import BuildContext
from .errors import StagingError


@dataclass(slots=True)
class StagingLayout:
    """On-disk tree handed to the image builder."""

    root: Path
    bin_dir: Path
    desktop_file: Path
    apprun: Path
    icon_file: Optional[Path] = None


def create_layout(context: BuildContext) -> StagingLayout:
    root = context.app_dir
    bin_dir = root / "usr" / "bin"
    try:
        root.mkdir()
        bin_dir.mkdir(parents=True)
    except OSError as exc:
        raise StagingError(f"Could not create {root}: {exc}") from exc
    logger.debug("Created AppDir at {}", root)
    return StagingLayout(
        root=root,
        bin_dir=bin_dir,
        desktop_file=root / f"{context.app_id}.desktop",
        apprun=root / "AppRun",
    )


def remove_staging(path: Path) -> bool:
    """Recursively delete ``path``; returns ``False`` if something was left behind.

    Safe to call when ``path`` no longer exists.
    """
    if not path.exists() and not path.is_symlink():
        return True
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as exc:
        logger.error("ERROR {}: {}", type(exc).__name__, exc)
        logger.warning("Some items were not deleted, please delete {} and all its subdirectories", path)
        return False
    logger.debug("Removed {}", path)
    return True


__all__ = ["StagingLayout", "create_layout", "remove_staging"]
