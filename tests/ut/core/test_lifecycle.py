"""归档清理测试"""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from infpm.core.lifecycle import cleanup, managed
from infpm.core.models import AcquiredArchive


def _archive(tmp_path: Path, *, retain: bool) -> AcquiredArchive:
    path = tmp_path / "pkg.tar.gz"
    path.write_bytes(b"data")
    return AcquiredArchive(stream=open(path, "rb"), origin_path=path, retain=retain)  # noqa: SIM115


class TestCleanup:
    def test_deletes_when_not_retained(self, tmp_path: Path) -> None:
        archive = _archive(tmp_path, retain=False)
        cleanup(archive)
        assert archive.stream.closed
        assert not archive.origin_path.exists()
        assert archive.released

    def test_keeps_when_retained(self, tmp_path: Path) -> None:
        archive = _archive(tmp_path, retain=True)
        cleanup(archive)
        assert archive.stream.closed
        assert archive.origin_path.exists()

    def test_idempotent(self, tmp_path: Path) -> None:
        archive = _archive(tmp_path, retain=False)
        cleanup(archive)
        cleanup(archive)
        assert not archive.origin_path.exists()

    def test_stream_only(self) -> None:
        archive = AcquiredArchive(stream=io.BytesIO(b"x"))
        cleanup(archive)
        assert archive.stream.closed

    def test_never_raises(self, tmp_path: Path) -> None:
        """关闭失败、文件已不存在都只记录日志"""
        stream = MagicMock()
        stream.close.side_effect = OSError("boom")
        archive = AcquiredArchive(stream=stream, origin_path=tmp_path / "gone.tar.gz")
        cleanup(archive)
        stream.close.assert_called_once()

    def test_delete_error_swallowed(self, tmp_path: Path) -> None:
        # 目录无法被 unlink
        directory = tmp_path / "dir.tar.gz"
        directory.mkdir()
        archive = AcquiredArchive(stream=io.BytesIO(), origin_path=directory)
        cleanup(archive)
        assert directory.exists()


class TestManaged:
    @pytest.mark.parametrize("retain", [True, False])
    def test_success_path(self, tmp_path: Path, retain: bool) -> None:
        archive = _archive(tmp_path, retain=retain)
        with managed(archive) as a:
            assert a.stream.read() == b"data"
        assert archive.origin_path.exists() is retain

    @pytest.mark.parametrize("retain", [True, False])
    def test_error_path(self, tmp_path: Path, retain: bool) -> None:
        archive = _archive(tmp_path, retain=retain)
        with pytest.raises(RuntimeError, match="primary"), managed(archive):
            raise RuntimeError("primary")
        assert archive.stream.closed
        assert archive.origin_path.exists() is retain
