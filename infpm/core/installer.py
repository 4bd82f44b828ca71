"""包安装器

步骤（每步依赖上一步成功）:
  1. 创建 store 目录 store_root/name/version/disambiguator
  2. 解压归档到该目录（失败时保留已创建的目录供排查，不做回滚）
  3. 布局识别: 深度优先遍历，找到第一个 bin / lib / share 目录，
     其父目录即 canonical root
  4. 链接: 找到 canonical root 时把 link_sources 按相对路径链接到 link root，
     否则把所有可执行文件链接到 link_root/bin/
  5. 单个链接失败只记录 LinkWarning，不中断安装

遍历按文件名字典序进行；符号链接（包括指向目录的）按普通文件处理，不会被展开。
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from infpm.core.exceptions import StoreError, ValidationError
from infpm.core.extractor import ArchiveExtractor, TarfileExtractor
from infpm.core.identity import store_path
from infpm.core.models import (
    AcquiredArchive,
    InstalledPackage,
    Layout,
    LinkWarning,
    PackageIdentity,
)

logger = logging.getLogger(__name__)

LAYOUT_MARKERS = frozenset(("bin", "lib", "share"))
DIR_MODE = 0o755
_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def _sorted_entries(directory: Path) -> list[os.DirEntry[str]]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)


def detect_layout(root: Path) -> Layout:
    """遍历解压目录，识别 canonical root、链接源目录与可执行文件

    找到 canonical root 之前正常向下遍历；之后遇到的任何目录都直接作为
    链接源，不再深入。可执行文件在整个遍历过程中都会收集。
    """
    layout = Layout()

    def visit(directory: Path) -> None:
        for entry in _sorted_entries(directory):
            path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                if layout.canonical_root is not None:
                    layout.link_sources.append(path)
                elif entry.name in LAYOUT_MARKERS:
                    layout.canonical_root = path.parent
                    layout.link_sources.append(path)
                    logger.info(
                        "找到 %s 目录，以其父目录为根: %s", entry.name, path.parent,
                        extra={"stage": "layout"},
                    )
                else:
                    visit(path)
            elif entry.stat(follow_symlinks=False).st_mode & _EXEC_BITS:
                logger.debug("找到可执行文件: %s", path)
                layout.executables.append(path)

    visit(root)
    return layout


class Installer:
    """把已获取的归档安装进 store 并链接到 link root"""

    def __init__(self, extractor: ArchiveExtractor | None = None) -> None:
        self.extractor = extractor or TarfileExtractor()

    def install(
        self,
        archive: AcquiredArchive,
        identity: PackageIdentity,
        *,
        store_root: Path,
        link_root: Path,
    ) -> InstalledPackage:
        if archive.released:
            raise ValidationError("归档句柄已被释放，不能再用于安装")

        dest = store_path(store_root, identity)
        try:
            dest.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            logger.error("创建包目录失败: %s", dest)
            raise StoreError(f"无法创建包目录 {dest}: {e}") from e

        logger.info("解压归档: %s -> %s", identity, dest, extra={"stage": "extract"})
        self.extractor.extract(archive.stream, dest)

        pkg = InstalledPackage(identity=identity, store_path=dest, link_root=link_root)

        logger.info("遍历包目录以查找需要链接的文件: %s", dest, extra={"stage": "layout"})
        try:
            layout = detect_layout(dest)
        except OSError as e:
            logger.error("遍历包目录失败: %s", dest)
            raise StoreError(f"无法遍历包目录 {dest}: {e}") from e
        pkg.canonical_root = layout.canonical_root

        if layout.canonical_root is not None:
            self.link_canonical(layout.canonical_root, layout.link_sources, link_root, pkg)
        else:
            self.link_executables(layout.executables, link_root, pkg)

        pkg.linked = True
        if pkg.link_warnings:
            logger.warning(
                "安装完成但有 %d 个链接失败: %s", len(pkg.link_warnings), identity,
            )
        else:
            logger.info("安装完成: %s (%d 个链接)", identity, len(pkg.links))
        return pkg

    # ------------------------------------------------------------------
    # 链接
    # ------------------------------------------------------------------

    def link_canonical(
        self, canonical_root: Path, sources: list[Path],
        link_root: Path, pkg: InstalledPackage,
    ) -> None:
        """按相对 canonical root 的路径，递归链接每个链接源目录"""
        for source in sources:
            try:
                rel = source.relative_to(canonical_root)
            except ValueError:
                # 识别出根之后，在更上层遇到的目录落在 link root 之外
                self._warn(pkg, source, link_root, "目录不在 canonical root 之下，跳过")
                continue
            self._link_tree(source, link_root / rel, pkg)
            logger.info("已递归链接目录: %s", source, extra={"stage": "link"})

    def link_executables(
        self, executables: list[Path], link_root: Path, pkg: InstalledPackage,
    ) -> None:
        """未识别出布局时，把所有可执行文件链接到 link_root/bin/"""
        bin_dir = link_root / "bin"
        try:
            bin_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("创建 %s 失败: %s", bin_dir, e)
        for exe in executables:
            self._symlink(exe, bin_dir / exe.name, pkg)

    def _link_tree(self, src: Path, dst: Path, pkg: InstalledPackage) -> None:
        try:
            dst.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            entries = _sorted_entries(src)
        except OSError as e:
            self._warn(pkg, src, dst, str(e))
            return

        for entry in entries:
            child = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                self._link_tree(child, dst / entry.name, pkg)
            else:
                self._symlink(child, dst / entry.name, pkg)

    def _symlink(self, src: Path, dst: Path, pkg: InstalledPackage) -> None:
        try:
            os.symlink(src, dst)
        except OSError as e:
            self._warn(pkg, src, dst, str(e))
            return
        logger.debug("已链接: %s -> %s", dst, src)
        pkg.links.append(dst)

    @staticmethod
    def _warn(pkg: InstalledPackage, src: Path, dst: Path, reason: str) -> None:
        logger.warning("链接失败，继续: %s -> %s (%s)", src, dst, reason, extra={"stage": "link"})
        pkg.link_warnings.append(LinkWarning(source=src, target=dst, reason=reason))
