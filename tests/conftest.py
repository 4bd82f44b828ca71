"""共享 fixture — tar 包构造 + 伪造 HTTP 响应"""

from __future__ import annotations

import http.client
import io
import tarfile
from collections.abc import Callable
from pathlib import Path

import pytest

EXEC = 0o755
PLAIN = 0o644


class FakeResponse(io.BytesIO):
    """模拟 urlopen 返回值: 可读、可作为上下文管理器、带 status"""

    def __init__(self, body: bytes = b"", status: int = 200) -> None:
        super().__init__(body)
        self.status = status


class TruncatedResponse(FakeResponse):
    """连接中途断开: 读取时抛 http.client.IncompleteRead"""

    def read(self, *args, **kwargs):  # noqa: ANN002, ANN003, ANN201
        raise http.client.IncompleteRead(b"", 100)

    def readinto(self, *args, **kwargs):  # noqa: ANN002, ANN003, ANN201
        raise http.client.IncompleteRead(b"", 100)


def tar_bytes(files: dict[str, int]) -> bytes:
    """构造 tar.gz 字节串，files 为 {相对路径: 权限位}，文件内容即其路径"""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, mode in files.items():
            data = f"content of {name}\n".encode()
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture()
def make_tarball(tmp_path: Path) -> Callable[..., Path]:
    """在 tmp_path/archives 下写出 tar.gz 文件并返回路径"""
    archives = tmp_path / "archives"
    archives.mkdir()

    def _make(files: dict[str, int], name: str = "pkg.tar.gz") -> Path:
        path = archives / name
        path.write_bytes(tar_bytes(files))
        return path

    return _make


@pytest.fixture()
def roots(tmp_path: Path) -> tuple[Path, Path]:
    """(store 根目录, link 根目录)，均未创建"""
    return tmp_path / "store", tmp_path / "root"
