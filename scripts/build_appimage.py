"""CLI to package the neutralino app in the current directory as an AppImage."""

from __future__ import annotations

from neu_appimage.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
