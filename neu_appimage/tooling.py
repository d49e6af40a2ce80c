"""Download and preparation of the external image builder."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from loguru import logger

from .build_config import ToolSpec
from .errors import DownloadError
from .launcher import make_executable

CHUNK_SIZE = 64 * 1024


@dataclass(slots=True)
class DownloadProgress:
    downloaded: int
    total: Optional[int]
    rate: float

    @property
    def percent(self) -> Optional[float]:
        if not self.total:
            return None
        return min(100.0, self.downloaded * 100.0 / self.total)


ProgressCallback = Callable[[DownloadProgress], None]


def download_tool(
    spec: ToolSpec,
    *,
    progress: Optional[ProgressCallback] = None,
    session: Optional[requests.Session] = None,
) -> Path:
    """Stream ``spec.url`` to ``spec.path``.

    The body is written to a ``.part`` file that is renamed once the transfer
    completes, so an interrupted download never leaves a truncated tool behind.
    """
    fetch = session.get if session is not None else requests.get
    partial = spec.path.with_name(spec.path.name + ".part")
    started = time.monotonic()
    downloaded = 0
    logger.info("Downloading {}", spec.name)
    try:
        with fetch(spec.url, stream=True, timeout=30) as response:
            response.raise_for_status()
            length = response.headers.get("Content-Length")
            total = int(length) if length and length.isdigit() else None
            with open(partial, "wb") as handle:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    handle.write(chunk)
                    downloaded += len(chunk)
                    if progress is not None:
                        elapsed = max(time.monotonic() - started, 1e-6)
                        progress(DownloadProgress(downloaded, total, downloaded / elapsed))
        if total is not None and downloaded < total:
            raise DownloadError(f"Download of {spec.name} interrupted after {downloaded} of {total} bytes")
        partial.replace(spec.path)
    except requests.RequestException as exc:
        partial.unlink(missing_ok=True)
        raise DownloadError(f"Failed to download {spec.name} from {spec.url}: {exc}") from exc
    except OSError as exc:
        partial.unlink(missing_ok=True)
        raise DownloadError(f"Failed to save {spec.name}: {exc}") from exc
    except DownloadError:
        partial.unlink(missing_ok=True)
        raise
    logger.debug("Downloaded {} bytes to {}", downloaded, spec.path)
    return spec.path


def ensure_tool(
    spec: ToolSpec,
    *,
    progress: Optional[ProgressCallback] = None,
    session: Optional[requests.Session] = None,
) -> Path:
    """Return an executable copy of the builder, downloading it only when absent."""
    if spec.path.is_file():
        logger.debug("Using existing {}", spec.path)
    else:
        download_tool(spec, progress=progress, session=session)
    make_executable(spec.path)
    return spec.path


def remove_tool(spec: ToolSpec) -> bool:
    """Delete the downloaded builder; returns ``False`` if it could not be removed."""
    try:
        spec.path.unlink(missing_ok=True)
    except OSError as exc:
        logger.error("ERROR {}: {}", type(exc).__name__, exc)
        logger.warning("{} was not deleted, please remove it manually", spec.path)
        return False
    logger.debug("Removed {}", spec.path)
    return True


__all__ = ["DownloadProgress", "ProgressCallback", "download_tool", "ensure_tool", "remove_tool"]
