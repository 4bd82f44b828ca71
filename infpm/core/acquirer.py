"""归档获取器

把 "远程 URL" 与 "本地路径" 统一成 AcquiredArchive:
- from_remote: 下载到临时文件（DISK）或直接使用响应流（MEMORY）
- from_local: 打开用户提供的本地归档

无论走哪条路径，都只产生一个 stream，调用方负责通过 lifecycle.cleanup() 释放。
"""

from __future__ import annotations

import http.client
import logging
import os
import shutil
import tempfile
import urllib.error
import urllib.request
from pathlib import Path
from typing import BinaryIO

from infpm.core.exceptions import (
    AcquisitionError,
    PackageNotFoundError,
    PermissionDeniedError,
)
from infpm.core.identity import generate_id
from infpm.core.models import AcquiredArchive, AcquireMode
from infpm.utils.net import url_basename, validate_url_scheme

logger = logging.getLogger(__name__)
_STAGE = {"stage": "acquire"}

_CHUNK_SIZE = 64 * 1024


class ArchiveAcquirer:
    """远程 / 本地归档获取"""

    def __init__(self, *, timeout: int = 60, temp_dir: str | Path | None = None) -> None:
        self.timeout = timeout
        self.temp_dir = str(temp_dir) if temp_dir else None

    def from_remote(
        self, url: str, mode: AcquireMode = AcquireMode.MEMORY,
    ) -> AcquiredArchive:
        validate_url_scheme(url, context="archive download")
        if mode is AcquireMode.DISK:
            logger.info("远程下载: 下载归档到磁盘: %s", url, extra=_STAGE)
            path = self._download(url)
            try:
                stream = open(path, "rb")  # noqa: SIM115
            except OSError as e:
                path.unlink(missing_ok=True)
                raise AcquisitionError(f"无法打开已下载的归档 {path}: {e}") from e
            logger.debug("临时文件已就绪: %s", path)
            return AcquiredArchive(stream=stream, origin_path=path, retain=False)

        logger.info("远程下载: 直接以流方式读取归档: %s", url, extra=_STAGE)
        return AcquiredArchive(stream=self._open_remote(url))

    def from_local(self, path: str | Path, *, retain: bool = True) -> AcquiredArchive:
        p = Path(path)
        if not retain:
            logger.warning("本地归档将在安装结束后被删除: %s", p, extra=_STAGE)
        logger.info("本地文件: 打开归档 %s", p, extra=_STAGE)
        try:
            stream = open(p, "rb")  # noqa: SIM115
        except FileNotFoundError as e:
            logger.error("本地文件不存在: %s", p, extra=_STAGE)
            raise PackageNotFoundError(f"本地归档不存在: {p}") from e
        except PermissionError as e:
            logger.error("本地文件无法打开，是否有读取权限? %s", p, extra=_STAGE)
            raise PermissionDeniedError(f"没有读取本地归档的权限: {p}") from e
        except IsADirectoryError as e:
            raise AcquisitionError(f"本地路径是目录而不是归档文件: {p}") from e
        except OSError as e:
            raise AcquisitionError(f"无法读取本地归档 {p}: {e}") from e
        return AcquiredArchive(stream=stream, origin_path=p, retain=retain)

    def _open_remote(self, url: str) -> BinaryIO:
        """GET 归档，返回未读取的响应对象（可作为二进制流使用）"""
        try:
            resp = urllib.request.urlopen(url, timeout=self.timeout)  # nosec B310
        except urllib.error.HTTPError as e:
            raise AcquisitionError(f"下载失败 (HTTP {e.code}): {url}") from e
        except (urllib.error.URLError, OSError, http.client.HTTPException) as e:
            logger.error("从远程服务器 GET 归档失败: %s", url, extra=_STAGE)
            raise AcquisitionError(f"下载失败: {url} - {e}") from e

        status = getattr(resp, "status", 200)
        if status != 200:
            resp.close()
            raise AcquisitionError(f"下载失败 (HTTP {status}): {url}")
        return resp

    def _download(self, url: str) -> Path:
        """下载到唯一命名的临时文件，失败时不留下残留文件"""
        try:
            fd, tmp = tempfile.mkstemp(
                prefix=generate_id(), suffix=url_basename(url), dir=self.temp_dir,
            )
        except OSError as e:
            logger.error("无法为远程下载创建临时文件", extra=_STAGE)
            raise AcquisitionError(f"无法创建临时文件: {e}") from e

        path = Path(tmp)
        try:
            with os.fdopen(fd, "wb") as f, self._open_remote(url) as body:
                shutil.copyfileobj(body, f, _CHUNK_SIZE)
        except (OSError, http.client.HTTPException) as e:
            path.unlink(missing_ok=True)
            logger.error("下载到临时文件失败: %s", path, extra=_STAGE)
            raise AcquisitionError(f"下载 {url} 到临时文件失败: {e!r}") from e
        except BaseException:
            path.unlink(missing_ok=True)
            raise
        return path
