"""配置管理

从 YAML 文件加载 + 编程式覆盖。Config 是显式传递的值，
由 CLI 入口加载后用于构造 PackageManager。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from infpm.core.exceptions import ConfigError
from infpm.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.infpm/config.yml"

_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0"})


def _coerce(name: str, kind: str, value: Any) -> Any:
    """按字段声明的类型校验 YAML 中的值，字符串形式的布尔/整数会被转换"""
    if kind == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_WORDS | _FALSE_WORDS:
            return value.strip().lower() in _TRUE_WORDS
    elif kind == "int":
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
    elif kind == "str":
        if isinstance(value, str):
            return value
    else:
        return value
    raise ConfigError(f"配置项 {name} 应为 {kind}，实际为 {value!r}")


@dataclass
class Config:
    """infpm 配置"""

    # 目录
    store_dir: str = "~/.infpm/store"
    link_root: str = "~/.infpm/root"

    # 行为
    interactive: bool = True
    use_disk: bool = False
    retain_local_archive: bool = True

    # 托管服务
    github_host: str = "github.com"
    github_api_url: str = "https://api.github.com"
    request_timeout: int = 60

    # 放不到字段里的配置项
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def store_path(self) -> Path:
        return Path(self.store_dir).expanduser()

    @property
    def link_path(self) -> Path:
        return Path(self.link_root).expanduser()

    @classmethod
    def from_file(cls, path: str | Path = DEFAULT_CONFIG_PATH) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        p = Path(path).expanduser()
        try:
            data = load_yaml(p)
        except (yaml.YAMLError, OSError, ValueError) as e:
            raise ConfigError(f"无法读取配置文件 {p}: {e}") from e
        if not data:
            return cls()

        # from __future__ annotations 下 f.type 是字符串
        known = {f.name: str(f.type) for f in fields(cls) if f.name != "extra"}
        matched = {k: _coerce(k, known[k], v) for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        logger.info("配置已加载: %s", p)
        return cfg

    @classmethod
    def load(cls, path: str | None = None) -> Config:
        """按 参数 > INFPM_CONFIG 环境变量 > 默认路径 的顺序加载"""
        return cls.from_file(path or os.getenv("INFPM_CONFIG") or DEFAULT_CONFIG_PATH)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
