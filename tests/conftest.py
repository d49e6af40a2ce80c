"""Pytest configuration and shared project fixtures."""

from __future__ import annotations

import json
import sys
import zipfile
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from neu_appimage.build_config import BuildContext  # noqa: E402

FAKE_LINUXDEPLOY = """#!/bin/sh
appdir="$2"
cp "$appdir"/*.desktop "$PWD/captured.desktop"
cp "$appdir/AppRun" "$PWD/captured.AppRun"
echo "building $appdir for $ARCH"
echo "short" >&2
echo "linuxdeploy: deploying dependencies for the AppDir" >&2
touch "$PWD/myapp-$ARCH.AppImage"
exit {code}
"""

FAKE_APPIMAGETOOL = """#!/bin/sh
echo "packing $1"
echo "noise" >&2
echo "appimagetool: squashfs compression done" >&2
touch "$2"
exit {code}
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "myapp"
    (root / "dist").mkdir(parents=True)
    (root / "resources" / "icons").mkdir(parents=True)
    (root / "resources" / "icons" / "appIcon.png").write_bytes(b"\x89PNG fake icon")
    (root / "neutralino.config.json").write_text(
        json.dumps({"applicationId": "js.neutralino.myapp", "icon": "/resources/icons/appIcon.png"}),
        encoding="utf-8",
    )
    with zipfile.ZipFile(root / "dist" / "myapp-release.zip", "w") as archive:
        archive.writestr("myapp-linux_x64", "#!/bin/sh\necho linux\n")
        archive.writestr("myapp-linux_arm64", "#!/bin/sh\necho arm\n")
        archive.writestr("myapp-mac_x64", "mac binary")
        archive.writestr("myapp-win_x64.exe", "windows binary")
        archive.writestr("resources.neu", "bundle")
    return root


@pytest.fixture
def make_context(project: Path) -> Callable[..., BuildContext]:
    def factory(**overrides) -> BuildContext:
        options = {"environ": {"PATH": "/usr/bin:/bin"}, "arch": "x86_64"}
        options.update(overrides)
        return BuildContext.from_project(project, **options)

    return factory


@pytest.fixture
def builder_script() -> Callable[[BuildContext, int], str]:
    def render(context: BuildContext, code: int = 0) -> str:
        template = FAKE_APPIMAGETOOL if context.tool.name.startswith("appimagetool") else FAKE_LINUXDEPLOY
        return template.format(code=code)

    return render


@pytest.fixture
def install_tool(builder_script) -> Callable[[BuildContext, int], Path]:
    """Place a fake image builder where the pipeline expects the downloaded tool."""

    def install(context: BuildContext, code: int = 0) -> Path:
        path = context.tool.path
        path.write_text(builder_script(context, code), encoding="utf-8")
        return path

    return install
