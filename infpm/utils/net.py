"""网络工具 — URL 校验"""

from __future__ import annotations

from urllib.parse import urlparse

from infpm.core.exceptions import ValidationError

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，本地文件请走 --file

    Raises:
        ValidationError: URL scheme 不在白名单内或缺少主机名
    """
    parsed = urlparse(url)
    label = f" ({context})" if context else ""
    if parsed.scheme not in _ALLOWED_SCHEMES:
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )
    if not parsed.netloc:
        raise ValidationError(f"URL 缺少主机名{label}: {url}")


def url_basename(url: str) -> str:
    """URL 路径的最后一段，用于临时文件命名"""
    path = urlparse(url).path.rstrip("/")
    return path.rsplit("/", 1)[-1]
