"""归档获取器测试"""

from __future__ import annotations

import urllib.error
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import FakeResponse, TruncatedResponse

from infpm.core.acquirer import ArchiveAcquirer
from infpm.core.exceptions import (
    AcquisitionError,
    PackageNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from infpm.core.models import AcquireMode

URL = "https://dl.example.com/releases/tool.tar.gz"


class TestFromLocal:
    def test_opens_file(self, tmp_path: Path) -> None:
        archive_file = tmp_path / "tool.tar.gz"
        archive_file.write_bytes(b"payload")

        archive = ArchiveAcquirer().from_local(archive_file)
        try:
            assert archive.stream.read() == b"payload"
            assert archive.origin_path == archive_file
            assert archive.retain is True
        finally:
            archive.stream.close()

    def test_retain_false(self, tmp_path: Path) -> None:
        archive_file = tmp_path / "tool.tar.gz"
        archive_file.write_bytes(b"payload")
        archive = ArchiveAcquirer().from_local(archive_file, retain=False)
        archive.stream.close()
        assert archive.retain is False

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PackageNotFoundError, match="不存在") as exc_info:
            ArchiveAcquirer().from_local(tmp_path / "nope.tar.gz")
        assert isinstance(exc_info.value, AcquisitionError)
        assert exc_info.value.code == "NOT_FOUND"

    def test_permission_denied(self, tmp_path: Path) -> None:
        archive_file = tmp_path / "secret.tar.gz"
        archive_file.write_bytes(b"x")
        with patch("infpm.core.acquirer.open", side_effect=PermissionError(13, "denied"), create=True), \
                pytest.raises(PermissionDeniedError, match="权限"):
            ArchiveAcquirer().from_local(archive_file)

    def test_directory_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(AcquisitionError, match="目录"):
            ArchiveAcquirer().from_local(tmp_path)


class TestFromRemote:
    def test_memory_mode_uses_response_stream(self) -> None:
        resp = FakeResponse(b"tarball")
        with patch("urllib.request.urlopen", return_value=resp):
            archive = ArchiveAcquirer().from_remote(URL, AcquireMode.MEMORY)

        assert archive.stream is resp
        assert archive.origin_path is None
        assert archive.retain is False

    def test_disk_mode_buffers_to_temp_file(self, tmp_path: Path) -> None:
        with patch("urllib.request.urlopen", return_value=FakeResponse(b"tarball")):
            archive = ArchiveAcquirer(temp_dir=tmp_path).from_remote(URL, AcquireMode.DISK)

        try:
            assert archive.origin_path is not None
            assert archive.origin_path.parent == tmp_path
            assert archive.origin_path.name.endswith("tool.tar.gz")
            assert archive.origin_path.read_bytes() == b"tarball"
            assert archive.stream.read() == b"tarball"
            assert archive.retain is False
        finally:
            archive.stream.close()

    def test_disk_mode_failure_leaves_no_temp_file(self, tmp_path: Path) -> None:
        err = urllib.error.HTTPError(URL, 404, "not found", hdrs=None, fp=None)  # type: ignore[arg-type]
        with patch("urllib.request.urlopen", side_effect=err), \
                pytest.raises(AcquisitionError, match="404"):
            ArchiveAcquirer(temp_dir=tmp_path).from_remote(URL, AcquireMode.DISK)
        assert list(tmp_path.iterdir()) == []

    def test_disk_mode_truncated_body_leaves_no_temp_file(self, tmp_path: Path) -> None:
        with patch("urllib.request.urlopen", return_value=TruncatedResponse()), \
                pytest.raises(AcquisitionError, match="IncompleteRead"):
            ArchiveAcquirer(temp_dir=tmp_path).from_remote(URL, AcquireMode.DISK)
        assert list(tmp_path.iterdir()) == []

    def test_disk_mode_interrupt_leaves_no_temp_file(self, tmp_path: Path) -> None:
        class _Interrupted(FakeResponse):
            def read(self, *args, **kwargs):  # noqa: ANN002, ANN003, ANN201
                raise KeyboardInterrupt

        with patch("urllib.request.urlopen", return_value=_Interrupted()), \
                pytest.raises(KeyboardInterrupt):
            ArchiveAcquirer(temp_dir=tmp_path).from_remote(URL, AcquireMode.DISK)
        assert list(tmp_path.iterdir()) == []

    def test_network_failure(self) -> None:
        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("refused")), \
                pytest.raises(AcquisitionError, match="下载失败"):
            ArchiveAcquirer().from_remote(URL)

    def test_non_200_status(self) -> None:
        resp = FakeResponse(b"", status=204)
        with patch("urllib.request.urlopen", return_value=resp), \
                pytest.raises(AcquisitionError, match="204"):
            ArchiveAcquirer().from_remote(URL)
        assert resp.closed

    def test_non_http_url_rejected(self) -> None:
        with pytest.raises(ValidationError, match="不允许的 URL 协议"):
            ArchiveAcquirer().from_remote("file:///etc/passwd")
