"""Tests for builder download and preparation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import pytest
import requests

from neu_appimage.build_config import ToolSpec
from neu_appimage.errors import DownloadError
from neu_appimage.tooling import DownloadProgress, ensure_tool, remove_tool


class FakeResponse:
    def __init__(self, chunks: List[bytes], status: int = 200, length: Optional[int] = None) -> None:
        self.chunks = chunks
        self.status_code = status
        size = sum(len(chunk) for chunk in chunks) if length is None else length
        self.headers: Dict[str, str] = {"Content-Length": str(size)}

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        yield from self.chunks


class FakeSession:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.requested: List[str] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.requested.append(url)
        return self.response


@pytest.fixture
def spec(tmp_path: Path) -> ToolSpec:
    return ToolSpec(
        name="linuxdeploy-x86_64.AppImage",
        url="https://example.com/linuxdeploy-x86_64.AppImage",
        path=tmp_path / "linuxdeploy-x86_64.AppImage",
    )


def test_existing_tool_is_not_downloaded(spec: ToolSpec) -> None:
    spec.path.write_bytes(b"tool")
    session = FakeSession(FakeResponse([b"new"]))
    path = ensure_tool(spec, session=session)
    assert path == spec.path
    assert session.requested == []
    assert spec.path.read_bytes() == b"tool"
    assert os.access(spec.path, os.X_OK)


def test_download_reports_progress(spec: ToolSpec) -> None:
    events: List[DownloadProgress] = []
    session = FakeSession(FakeResponse([b"ab", b"cd"]))
    ensure_tool(spec, session=session, progress=events.append)
    assert session.requested == [spec.url]
    assert spec.path.read_bytes() == b"abcd"
    assert os.access(spec.path, os.X_OK)
    assert [event.percent for event in events] == [50.0, 100.0]
    assert all(event.rate > 0 for event in events)


def test_http_error_is_terminal(spec: ToolSpec) -> None:
    session = FakeSession(FakeResponse([], status=404))
    with pytest.raises(DownloadError):
        ensure_tool(spec, session=session)
    assert not spec.path.exists()
    assert not spec.path.with_name(spec.path.name + ".part").exists()


def test_truncated_download_leaves_nothing_behind(spec: ToolSpec) -> None:
    session = FakeSession(FakeResponse([b"ab"], length=10))
    with pytest.raises(DownloadError, match="interrupted"):
        ensure_tool(spec, session=session)
    assert not spec.path.exists()
    assert not spec.path.with_name(spec.path.name + ".part").exists()


def test_default_download_uses_requests_get(spec: ToolSpec, monkeypatch: pytest.MonkeyPatch) -> None:
    requested: List[str] = []

    def fake_get(url: str, **kwargs) -> FakeResponse:
        requested.append(url)
        assert kwargs["stream"] is True
        return FakeResponse([b"tool"])

    monkeypatch.setattr("neu_appimage.tooling.requests.get", fake_get)
    ensure_tool(spec)
    assert requested == [spec.url]
    assert spec.path.read_bytes() == b"tool"


def test_remove_tool(spec: ToolSpec) -> None:
    spec.path.write_bytes(b"tool")
    assert remove_tool(spec)
    assert not spec.path.exists()
    assert remove_tool(spec)


def test_remove_tool_reports_failure(spec: ToolSpec) -> None:
    spec.path.mkdir()
    assert not remove_tool(spec)
    assert spec.path.exists()
