"""Runs the external image builder and forwards its output."""

from __future__ import annotations

import subprocess
import threading
from pathlib import Path
from typing import IO, Callable, List, Mapping, Optional, Sequence

from loguru import logger

from .errors import SpawnError

LineSink = Callable[[str], None]


def _log_stdout(line: str) -> None:
    logger.bind(stream="stdout").info("stdout {}", line)


def _log_stderr(line: str) -> None:
    logger.bind(stream="stderr").warning("stderr {}", line)


def _pump(stream: IO[str], sink: LineSink, min_length: int) -> None:
    with stream:
        for raw in stream:
            line = raw.rstrip("\r\n")
            if min_length and len(line) < min_length:
                continue
            sink(line)


def run_builder(
    tool_path: Path,
    args: Sequence[str],
    env: Mapping[str, str],
    *,
    cwd: Optional[Path] = None,
    min_stderr_length: int = 0,
    on_stdout: Optional[LineSink] = None,
    on_stderr: Optional[LineSink] = None,
) -> int:
    """Run ``tool_path`` with ``args`` and return its exit status.

    Both output streams are drained on their own threads while this call waits
    for the process. stderr lines shorter than ``min_stderr_length`` are
    dropped. A non-zero status is returned, not raised.
    """
    on_stdout = on_stdout or _log_stdout
    on_stderr = on_stderr or _log_stderr
    cmd = [str(tool_path), *args]
    logger.debug("Running image builder: {}", " ".join(cmd))
    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=dict(env),
            cwd=str(cwd) if cwd else None,
            text=True,
            errors="replace",
            bufsize=1,
        )
    except OSError as exc:
        raise SpawnError(f"Could not start {tool_path.name}: {exc}") from exc

    readers: List[threading.Thread] = [
        threading.Thread(target=_pump, args=(process.stdout, on_stdout, 0), name="builder-stdout", daemon=True),
        threading.Thread(
            target=_pump, args=(process.stderr, on_stderr, min_stderr_length), name="builder-stderr", daemon=True
        ),
    ]
    for reader in readers:
        reader.start()
    code = process.wait()
    for reader in readers:
        reader.join()
    return code


__all__ = ["LineSink", "run_builder"]
