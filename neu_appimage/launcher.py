"""Desktop entry and AppRun generation."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Dict, Optional

from .errors import StagingError
from .staging import StagingLayout

DESKTOP_SECTION = "[Desktop Entry]"


def make_executable(path: Path) -> None:
    try:
        path.chmod(path.stat().st_mode | 0o111)
    except OSError as exc:
        raise StagingError(f"Could not mark {path.name} executable: {exc}") from exc


def _write(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise StagingError(f"Could not write {path}: {exc}") from exc


def copy_icon(layout: StagingLayout, icon: Path) -> Path:
    target = layout.root / icon.name
    try:
        shutil.copyfile(icon, target)
    except OSError as exc:
        raise StagingError(f"Could not copy icon {icon}: {exc}") from exc
    layout.icon_file = target
    return target


def desktop_entry(name: str, executable: str, icon: Optional[Path]) -> Dict[str, Optional[str]]:
    return {
        "Name": name,
        "Exec": executable,
        "Icon": icon.stem if icon is not None else None,
        "Type": "Application",
        "Categories": "Utility",
    }


def render_desktop_entry(entry: Dict[str, Optional[str]]) -> str:
    lines = [DESKTOP_SECTION]
    lines.extend(f"{key}={value}" for key, value in entry.items() if value is not None)
    return "\n".join(lines) + "\n"


def render_apprun(executable: str) -> str:
    return (
        "#!/bin/sh\n"
        'SELF=$(readlink -f "$0")\n'
        "HERE=${SELF%/*}\n"
        f'EXEC="${{HERE}}/usr/bin/{executable}"\n'
        'exec "${EXEC}" "$@"\n'
    )


def write_desktop_entry(layout: StagingLayout, name: str, executable: str, icon: Optional[Path]) -> Path:
    _write(layout.desktop_file, render_desktop_entry(desktop_entry(name, executable, icon)))
    make_executable(layout.desktop_file)
    return layout.desktop_file


def write_apprun(layout: StagingLayout, executable: str) -> Path:
    _write(layout.apprun, render_apprun(executable))
    make_executable(layout.apprun)
    return layout.apprun


__all__ = [
    "copy_icon",
    "desktop_entry",
    "make_executable",
    "render_apprun",
    "render_desktop_entry",
    "write_apprun",
    "write_desktop_entry",
]
