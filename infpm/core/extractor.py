"""归档解压

通过 ArchiveExtractor 协议抽象解压实现，方便测试替换。
默认实现基于 tarfile 流式读取，支持 gz / bz2 / xz 压缩，
输入流无需可 seek（可以直接是 HTTP 响应）。
"""

from __future__ import annotations

import http.client
import logging
import tarfile
from pathlib import Path
from typing import BinaryIO, Protocol

from infpm.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)


class ArchiveExtractor(Protocol):
    """解压器协议: 把字节流完整展开到目标目录，失败抛 ExtractionError"""

    def extract(self, stream: BinaryIO, dest: Path) -> None:
        ...


class TarfileExtractor:
    """基于 tarfile 的默认解压器"""

    def extract(self, stream: BinaryIO, dest: Path) -> None:
        try:
            with tarfile.open(fileobj=stream, mode="r|*") as tf:
                tf.extractall(path=str(dest), filter="data")  # noqa: S202
        except (tarfile.TarError, OSError, http.client.HTTPException) as e:
            logger.error("使用 tarfile 解压归档失败: %s", dest, extra={"stage": "extract"})
            raise ExtractionError(f"解压归档到 {dest} 失败: {e!r}") from e
