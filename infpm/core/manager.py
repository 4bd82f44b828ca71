"""包管理器

PackageManager 持有 store 根目录、link 根目录与交互开关，每次调用显式传入，
无隐藏的全局状态。完整流水线:

  AssetResolver（仅仓库 URL） → ArchiveAcquirer → Installer → lifecycle.cleanup

用法:
    from infpm.core.manager import PackageManager

    pm = PackageManager("~/.infpm/store", "~/.infpm/root")
    pm.install_from_url("https://github.com/alecks/infpm")
    pm.install_from_file("tool.tar.gz", "tool", "1.0.0")
"""

from __future__ import annotations

import logging
from pathlib import Path

from infpm.core.acquirer import ArchiveAcquirer
from infpm.core.config import Config
from infpm.core.exceptions import ConfigError, StoreError, ValidationError
from infpm.core.identity import new_identity
from infpm.core.installer import DIR_MODE, Installer
from infpm.core.lifecycle import managed
from infpm.core.models import (
    AcquiredArchive,
    AcquireMode,
    InstalledPackage,
    PackageIdentity,
)
from infpm.core.resolver import AssetResolver
from infpm.utils.net import validate_url_scheme

logger = logging.getLogger(__name__)


class PackageManager:
    """无 root 权限的包管理器"""

    def __init__(
        self,
        store_root: str | Path,
        link_root: str | Path,
        *,
        interactive: bool = True,
        mode: AcquireMode = AcquireMode.MEMORY,
        resolver: AssetResolver | None = None,
        acquirer: ArchiveAcquirer | None = None,
        installer: Installer | None = None,
    ) -> None:
        if not store_root or not link_root:
            raise ConfigError("创建包管理器需要同时提供 store 根目录和 link 根目录")
        self.store_root = Path(store_root).expanduser().absolute()
        self.link_root = Path(link_root).expanduser().absolute()
        self.interactive = interactive
        self.mode = mode
        self.resolver = resolver or AssetResolver(interactive=interactive)
        self.acquirer = acquirer or ArchiveAcquirer()
        self.installer = installer or Installer()
        self.init()

    @classmethod
    def from_config(cls, cfg: Config) -> PackageManager:
        return cls(
            cfg.store_path,
            cfg.link_path,
            interactive=cfg.interactive,
            mode=AcquireMode.DISK if cfg.use_disk else AcquireMode.MEMORY,
            resolver=AssetResolver(
                interactive=cfg.interactive,
                host=cfg.github_host,
                api_url=cfg.github_api_url,
                timeout=cfg.request_timeout,
            ),
            acquirer=ArchiveAcquirer(timeout=cfg.request_timeout),
        )

    def init(self) -> None:
        """创建 store 与 link 根目录，可重复调用"""
        for label, path in (("store", self.store_root), ("link", self.link_root)):
            try:
                path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            except OSError as e:
                logger.error("创建 %s 目录失败，是否有权限? %s", label, path)
                raise StoreError(f"无法创建 {label} 目录 {path}: {e}") from e
        logger.info(
            "包管理器已初始化: store=%s, link=%s", self.store_root, self.link_root,
        )

    # ------------------------------------------------------------------
    # 安装
    # ------------------------------------------------------------------

    def install(
        self, archive: AcquiredArchive, identity: PackageIdentity,
    ) -> InstalledPackage:
        """安装已获取的归档；无论成功与否都会清理归档"""
        with managed(archive):
            return self.installer.install(
                archive, identity,
                store_root=self.store_root, link_root=self.link_root,
            )

    def install_from_file(
        self, path: str | Path, name: str, version: str, *, retain: bool = True,
    ) -> InstalledPackage:
        """从本地归档安装，retain=False 时安装结束后删除该归档"""
        identity = new_identity(name, version)
        archive = self.acquirer.from_local(path, retain=retain)
        return self.install(archive, identity)

    def install_from_url(
        self, url: str, name: str = "", version: str = "",
        *, mode: AcquireMode | None = None,
    ) -> InstalledPackage:
        """从 URL 安装

        仓库 URL（github.com/<owner>/<repo>）自动解析最新 release，
        包名与版本取自仓库名和 release tag；其他 URL 必须提供 name 与 version。
        """
        validate_url_scheme(url, context="install")

        if self.resolver.handles(url):
            resolved = self.resolver.resolve(url)
            name, version, url = resolved.name, resolved.version, resolved.url
        elif not name or not version:
            raise ValidationError(
                f"非仓库 URL 必须提供包名和版本: {url}"
            )

        identity = new_identity(name, version)
        archive = self.acquirer.from_remote(url, mode or self.mode)
        return self.install(archive, identity)
