"""包标识与 store 布局

store 相对路径为 name/version/disambiguator。disambiguator 只用于避免同名同版本
重复安装时的路径冲突，不保证全局唯一，也不具备密码学强度。
"""

from __future__ import annotations

import random
import string
from pathlib import Path

from infpm.core.models import PackageIdentity

# 不含数字 0
ID_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + "123456789"
ID_LENGTH = 5


def generate_id(length: int = ID_LENGTH) -> str:
    """生成短随机标识，适合拼进文件名"""
    return "".join(random.choice(ID_ALPHABET) for _ in range(length))  # noqa: S311


def new_identity(name: str, version: str) -> PackageIdentity:
    """构造新的包标识，name / version 为空时抛 ValidationError"""
    return PackageIdentity(name=name, version=version, disambiguator=generate_id())


def store_path(store_root: Path, identity: PackageIdentity) -> Path:
    return store_root / identity.relative_path
