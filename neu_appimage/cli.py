"""Command line entry point: package the current neutralino app as an AppImage."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from .build import build_appimage
from .build_config import BuildContext, BuildVariant, IconPolicy
from .errors import ConfigurationError
from .logger import setup_logging
from .tooling import DownloadProgress


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Package a neutralino release as an AppImage")
    parser.add_argument(
        "--project",
        type=Path,
        default=None,
        help="Project directory (defaults to the current directory)",
    )
    parser.add_argument(
        "--variant",
        choices=[variant.value for variant in BuildVariant],
        help="Image builder to use (env: NEU_APPIMAGE_VARIANT)",
    )
    parser.add_argument(
        "--icon-policy",
        choices=[policy.value for policy in IconPolicy],
        help="What to do when no icon is configured (env: NEU_APPIMAGE_ICON_POLICY)",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Replace an existing AppDir without asking")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    parser.add_argument("--log-dir", help="Write a JSON log file to this directory (env: NEU_APPIMAGE_LOG_DIR)")
    return parser.parse_args(argv)


def prompt_overwrite(app_dir: Path) -> bool:
    try:
        answer = input(f"{app_dir} already exists! Would you like to replace it? [Y/n] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"", "y", "yes"}


class ProgressReporter:
    """Logs download progress every ``step`` percent."""

    def __init__(self, step: int = 10) -> None:
        self.step = step
        self._next = 0

    def __call__(self, progress: DownloadProgress) -> None:
        percent = progress.percent
        if percent is None or percent < self._next:
            return
        self._next = (int(percent) // self.step + 1) * self.step
        logger.info("Downloaded {:.0f}% ({:.1f} MB/s)", percent, progress.rate / (1024 * 1024))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    environ = dict(os.environ)
    setup_logging(
        console_level="DEBUG" if args.verbose else "INFO",
        log_directory=args.log_dir or environ.get("NEU_APPIMAGE_LOG_DIR"),
    )

    try:
        context = BuildContext.from_project(
            args.project or Path.cwd(),
            environ=environ,
            variant=args.variant,
            icon_policy=args.icon_policy,
        )
    except ConfigurationError as exc:
        logger.error("ERROR {}: {}", type(exc).__name__, exc)
        return exc.exit_code

    confirm = (lambda _path: True) if args.yes else prompt_overwrite
    return build_appimage(context, confirm_overwrite=confirm, progress=ProgressReporter())


if __name__ == "__main__":
    sys.exit(main())
