"""Packaging configuration dataclasses."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError

CONFIG_FILENAME = "neutralino.config.json"
DEFAULT_ICON = Path(__file__).resolve().parent / "resources" / "default-icon.png"

LINUXDEPLOY_URL = "https://github.com/linuxdeploy/linuxdeploy/releases/download/continuous/{name}"
APPIMAGETOOL_URL = "https://github.com/AppImage/AppImageKit/releases/download/continuous/{name}"

# uname machine -> suffix used by neutralino release binaries
NEU_ARCH_NAMES = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armhf",
    "armhf": "armhf",
}


class BuildVariant(str, Enum):
    LINUXDEPLOY = "linuxdeploy"
    APPIMAGETOOL = "appimagetool"


class IconPolicy(str, Enum):
    LENIENT = "lenient"
    STRICT = "strict"


def _parse_enum(enum_cls, value: str, setting: str):
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(f"Unknown {setting} {value!r} (expected one of: {choices})") from None


@dataclass(slots=True)
class ProjectConfig:
    """The subset of ``neutralino.config.json`` the pipeline consumes."""

    icon: Optional[Path] = None

    @classmethod
    def load(cls, project_root: Path) -> "ProjectConfig":
        config_path = project_root / CONFIG_FILENAME
        if not config_path.is_file():
            raise ConfigurationError(f"{project_root} is not a neutralino app: {CONFIG_FILENAME} not found")
        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"Could not read {config_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{config_path} must contain a JSON object")

        icon = raw.get("icon")
        if icon is None or icon == "":
            return cls(icon=None)
        if not isinstance(icon, str):
            raise ConfigurationError(f"'icon' in {config_path} must be a string path")
        # neutralino writes resource paths relative to the app root with a leading slash
        return cls(icon=project_root / icon.lstrip("/"))


def load_project_config(project_root: Path) -> ProjectConfig:
    return ProjectConfig.load(project_root)


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """External image builder: where it lives and where to fetch it from."""

    name: str
    url: str
    path: Path
    min_stderr_length: int = 0


@dataclass(slots=True, frozen=True)
class BuildContext:
    """Per-run settings, captured once before the pipeline starts."""

    project_root: Path
    app_id: str
    app_dir: Path
    archive_path: Path
    icon: Optional[Path]
    arch: str
    variant: BuildVariant = BuildVariant.LINUXDEPLOY
    icon_policy: IconPolicy = IconPolicy.LENIENT
    environ: Mapping[str, str] = field(default_factory=dict)

    @property
    def neu_arch(self) -> str:
        return NEU_ARCH_NAMES.get(self.arch, self.arch)

    @property
    def executable_name(self) -> str:
        return f"{self.app_id}-linux_{self.neu_arch}"

    @property
    def image_path(self) -> Path:
        return self.project_root / f"{self.app_id}-{self.arch}.AppImage"

    @property
    def tool(self) -> ToolSpec:
        if self.variant is BuildVariant.APPIMAGETOOL:
            name = f"appimagetool-{self.arch}.AppImage"
            return ToolSpec(
                name=name,
                url=APPIMAGETOOL_URL.format(name=name),
                path=self.project_root / name,
                min_stderr_length=20,
            )
        name = f"linuxdeploy-{self.arch}.AppImage"
        return ToolSpec(name=name, url=LINUXDEPLOY_URL.format(name=name), path=self.project_root / name)

    @classmethod
    def from_project(
        cls,
        project_root: Path,
        *,
        environ: Optional[Mapping[str, str]] = None,
        arch: Optional[str] = None,
        variant: Optional[str] = None,
        icon_policy: Optional[str] = None,
    ) -> "BuildContext":
        """Build the context for ``project_root``.

        Explicit ``variant``/``icon_policy`` arguments win over the
        ``NEU_APPIMAGE_VARIANT``/``NEU_APPIMAGE_ICON_POLICY`` environment
        variables. Raises :class:`ConfigurationError` when the project has no
        readable ``neutralino.config.json``.
        """
        env = dict(os.environ if environ is None else environ)
        root = Path(project_root).resolve()
        app_id = root.name
        config = load_project_config(root)

        variant_value = variant or env.get("NEU_APPIMAGE_VARIANT", BuildVariant.LINUXDEPLOY.value)
        policy_value = icon_policy or env.get("NEU_APPIMAGE_ICON_POLICY", IconPolicy.LENIENT.value)

        return cls(
            project_root=root,
            app_id=app_id,
            app_dir=root / f"{app_id}.AppDir",
            archive_path=root / "dist" / f"{app_id}-release.zip",
            icon=config.icon,
            arch=arch or platform.machine() or "x86_64",
            variant=_parse_enum(BuildVariant, variant_value, "build variant"),
            icon_policy=_parse_enum(IconPolicy, policy_value, "icon policy"),
            environ=env,
        )
