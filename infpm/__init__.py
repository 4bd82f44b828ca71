"""infpm - 无需 root 权限的极简包管理器"""

__version__ = "0.1.0"
