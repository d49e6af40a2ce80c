"""Error taxonomy for the AppImage build pipeline."""

from __future__ import annotations


class PackagingError(Exception):
    """Base class for every failure the pipeline reports to the operator."""

    exit_code: int = 1


class ConfigurationError(PackagingError):
    """Project configuration is missing or invalid."""


class StagingError(PackagingError):
    """A directory or file inside the AppDir could not be created or written."""


class ExtractError(PackagingError):
    """The release archive is missing, unreadable or yielded nothing usable."""


class DownloadError(PackagingError):
    """The external builder could not be fetched."""


class SpawnError(PackagingError):
    """The external builder could not be started."""


class BuildFailure(PackagingError):
    """The external builder ran but exited with a non-zero status."""

    def __init__(self, exit_code: int) -> None:
        super().__init__(f"image builder exited with status {exit_code}")
        self.exit_code = exit_code


__all__ = [
    "PackagingError",
    "ConfigurationError",
    "StagingError",
    "ExtractError",
    "DownloadError",
    "SpawnError",
    "BuildFailure",
]
