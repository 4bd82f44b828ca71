"""归档生命周期管理

每个 AcquiredArchive 在流水线的任何退出路径上都必须且只清理一次:
关闭 stream，retain 为 False 时删除 origin_path。

cleanup() 本身从不抛异常: 它常在异常回溯过程中执行，
次生错误只记录日志，不能掩盖原始错误。
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from infpm.core.models import AcquiredArchive

logger = logging.getLogger(__name__)


def cleanup(archive: AcquiredArchive) -> None:
    """关闭归档句柄并按需删除归档文件，重复调用无副作用"""
    if archive.released:
        return
    archive.released = True
    logger.info("安装后清理: %s", archive.origin_path or "<stream>", extra={"stage": "cleanup"})

    try:
        archive.stream.close()
    except Exception:  # noqa: BLE001
        logger.warning("关闭归档句柄失败", exc_info=True)

    if archive.retain or archive.origin_path is None:
        return
    try:
        archive.origin_path.unlink(missing_ok=True)
        logger.debug("已删除归档文件: %s", archive.origin_path)
    except OSError:
        logger.warning("删除归档文件失败: %s", archive.origin_path, exc_info=True)


@contextmanager
def managed(archive: AcquiredArchive) -> Iterator[AcquiredArchive]:
    """在 with 块结束时（无论成功或异常）清理归档"""
    try:
        yield archive
    finally:
        cleanup(archive)
