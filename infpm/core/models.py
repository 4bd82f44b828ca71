"""核心数据模型

所有流水线数据类集中定义，各阶段统一从此处导入。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from infpm.core.exceptions import ValidationError

# =========================================================================
# 资产解析
# =========================================================================


@dataclass(frozen=True)
class ReleaseAsset:
    """release 中的单个候选资产"""

    name: str
    download_url: str


@dataclass(frozen=True)
class Release:
    """releases/latest 接口的响应

    https://docs.github.com/en/rest/releases/releases#get-the-latest-release
    """

    name: str
    html_url: str
    tag_name: str
    assets: tuple[ReleaseAsset, ...] = ()


@dataclass(frozen=True)
class ResolvedAsset:
    """解析结果: 包名取仓库名，版本取 release tag"""

    name: str
    version: str
    url: str


# =========================================================================
# 归档获取
# =========================================================================


class AcquireMode(str, Enum):
    """远程归档的获取方式"""

    DISK = "disk"      # 先下载到临时文件再解压，内存受限时使用
    MEMORY = "memory"  # 直接以响应流解压


@dataclass
class AcquiredArchive:
    """获取阶段交给安装阶段的归档句柄

    由 lifecycle.cleanup() 负责关闭 stream，retain 为 False 时同时删除 origin_path。
    """

    stream: BinaryIO
    origin_path: Path | None = None
    retain: bool = False
    released: bool = False


# =========================================================================
# 包标识 / 安装结果
# =========================================================================


@dataclass(frozen=True)
class PackageIdentity:
    """包在 store 中的唯一位置: name/version/disambiguator"""

    name: str
    version: str
    disambiguator: str

    def __post_init__(self) -> None:
        if not self.name or not self.version:
            raise ValidationError(
                f"包名和版本不能为空 (name={self.name!r}, version={self.version!r})"
            )

    @property
    def relative_path(self) -> Path:
        return Path(self.name) / self.version / self.disambiguator

    def __str__(self) -> str:
        return f"{self.name}@{self.version} ({self.disambiguator})"


@dataclass
class Layout:
    """解压目录的布局识别结果"""

    canonical_root: Path | None = None
    link_sources: list[Path] = field(default_factory=list)
    executables: list[Path] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.canonical_root is not None


@dataclass(frozen=True)
class LinkWarning:
    """单个符号链接创建失败（非致命）"""

    source: Path
    target: Path
    reason: str


@dataclass
class InstalledPackage:
    """已解压进 store 的包"""

    identity: PackageIdentity
    store_path: Path
    link_root: Path
    linked: bool = False
    canonical_root: Path | None = None
    links: list[Path] = field(default_factory=list)
    link_warnings: list[LinkWarning] = field(default_factory=list)
