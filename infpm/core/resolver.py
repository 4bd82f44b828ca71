"""托管服务 release 资产解析

职责:
- 识别 github.com/<owner>/<repo> 形式的仓库 URL
- 查询 releases/latest 接口
- 按当前 OS / 架构关键字为资产打分
- 多个候选时交互式让用户选择

资产打分规则:
  关键字固定占 4 个槽位（OS、架构、OS 别名、架构别名），缺失的别名槽位
  不命中任何资产。对每个资产依次扫描槽位，扫描某个槽位 *之前* 若命中数已达 2，
  就把该资产追加到候选列表。因此同一资产可能被追加多次，
  而恰好在第 4 个槽位达到 2 次命中的资产不会入选。
"""

from __future__ import annotations

import http.client
import json
import logging
import platform
import urllib.error
import urllib.request
from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any
from urllib.parse import urlparse

import click

from infpm.core.exceptions import ResolutionError
from infpm.core.models import Release, ReleaseAsset, ResolvedAsset
from infpm.utils.net import validate_url_scheme

logger = logging.getLogger(__name__)
_STAGE = {"stage": "resolve"}

GITHUB_HOST = "github.com"
GITHUB_API_URL = "https://api.github.com"

# 资产命名里常见的 OS / 架构别名，只读
DEFAULT_KEYWORD_ALIASES: Mapping[str, str] = MappingProxyType({
    "darwin": "macos",
    "amd64": "x86",
})

# platform 模块的取值 → release 资产里惯用的 OS / 架构写法
_SYSTEM_TOKENS: Mapping[str, str] = MappingProxyType({
    "linux": "linux",
    "darwin": "darwin",
    "windows": "windows",
    "freebsd": "freebsd",
})
_MACHINE_TOKENS: Mapping[str, str] = MappingProxyType({
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "armv7l": "arm",
})

MIN_KEYWORD_MATCHES = 2
KEYWORD_SLOTS = 4


def current_platform() -> tuple[str, str]:
    """返回当前 (os, arch) 标识，如 ("linux", "amd64")"""
    system = platform.system().lower()
    machine = platform.machine().lower()
    return _SYSTEM_TOKENS.get(system, system), _MACHINE_TOKENS.get(machine, machine)


def github_repo(url: str, host: str = GITHUB_HOST) -> tuple[str, str] | None:
    """URL 形如 https://<host>/<owner>/<repo> 时返回 (owner, repo)，否则返回 None"""
    parsed = urlparse(url)
    if parsed.hostname != host:
        return None
    segments = parsed.path.split("/")
    if len(segments) != 3 or not segments[1] or not segments[2]:
        return None
    return segments[1], segments[2]


def platform_keywords(
    system: str, machine: str,
    aliases: Mapping[str, str] = DEFAULT_KEYWORD_ALIASES,
) -> list[str]:
    """OS、架构及其已知别名，最多 4 个关键字"""
    keywords = [system, machine]
    for token in (system, machine):
        alias = aliases.get(token)
        if alias:
            keywords.append(alias)
    return keywords


def score_assets(
    assets: Sequence[ReleaseAsset], keywords: Sequence[str],
) -> list[ReleaseAsset]:
    """按关键字命中数筛选候选资产（规则见模块说明，结果可能含重复项）"""
    slots = list(keywords) + [""] * (KEYWORD_SLOTS - len(keywords))
    candidates: list[ReleaseAsset] = []
    for asset in assets:
        lowered = asset.name.lower()
        matches = 0
        for kw in slots:
            if matches >= MIN_KEYWORD_MATCHES:
                candidates.append(asset)
            if kw and kw.lower() in lowered:
                matches += 1
    return candidates


def _prompt_index(text: str) -> int:
    # click.prompt 对非整数输入会自动重新提示
    return click.prompt(text, type=int)


def _parse_release(data: Any) -> Release:
    if not isinstance(data, dict):
        raise TypeError(f"顶层应为对象，实际为 {type(data).__name__}")
    assets = data.get("assets") or []
    if not isinstance(assets, list):
        raise TypeError("assets 字段应为列表")
    return Release(
        name=str(data.get("name") or ""),
        html_url=str(data.get("html_url") or ""),
        tag_name=str(data.get("tag_name") or ""),
        assets=tuple(
            ReleaseAsset(name=a["name"], download_url=a["browser_download_url"])
            for a in assets
        ),
    )


class AssetResolver:
    """把仓库 URL 解析为具体可下载的 release 资产"""

    def __init__(
        self,
        *,
        interactive: bool = True,
        host: str = GITHUB_HOST,
        api_url: str = GITHUB_API_URL,
        timeout: int = 60,
        platform_tokens: tuple[str, str] | None = None,
        aliases: Mapping[str, str] = DEFAULT_KEYWORD_ALIASES,
        prompt: Callable[[str], int] = _prompt_index,
        echo: Callable[[str], None] = click.echo,
    ) -> None:
        self.interactive = interactive
        self.host = host
        self.api_url = api_url
        self.timeout = timeout
        self.platform_tokens = platform_tokens or current_platform()
        self.aliases = aliases
        self.prompt = prompt
        self.echo = echo

    def handles(self, url: str) -> bool:
        return github_repo(url, self.host) is not None

    @property
    def keywords(self) -> list[str]:
        system, machine = self.platform_tokens
        return platform_keywords(system, machine, self.aliases)

    def resolve(self, url: str) -> ResolvedAsset:
        """查询最新 release 并选出一个资产"""
        repo = github_repo(url, self.host)
        if repo is None:
            raise ResolutionError(
                f"URL 不是 {self.host}/<owner>/<repo> 形式: {url}"
            )
        owner, name = repo

        release = self.fetch_latest_release(owner, name)
        self.echo(
            f"找到最新 release: {release.name or release.tag_name}。"
            f"发布说明: {release.html_url}"
        )

        candidates = score_assets(release.assets, self.keywords)
        logger.info(
            "资产匹配: %s/%s 共 %d 个资产, %d 个候选 (关键字=%s)",
            owner, name, len(release.assets), len(candidates), self.keywords,
            extra=_STAGE,
        )
        asset = self.choose(candidates, release)
        logger.info("已选择资产: %s -> %s", asset.name, asset.download_url, extra=_STAGE)
        return ResolvedAsset(name=name, version=release.tag_name, url=asset.download_url)

    def fetch_latest_release(self, owner: str, repo: str) -> Release:
        """GET /repos/{owner}/{repo}/releases/latest"""
        endpoint = f"{self.api_url.rstrip('/')}/repos/{owner}/{repo}/releases/latest"
        validate_url_scheme(endpoint, context="release api")
        rate_limit_hint = (
            f"{self.host} 返回了非成功状态码 ({{status}})，很可能是触发了 API 限流。"
            f"请直接提供 release 资产的下载 URL。"
        )

        req = urllib.request.Request(
            endpoint, headers={"Accept": "application/vnd.github+json"},
        )
        logger.info("查询最新 release: %s", endpoint, extra=_STAGE)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                status = getattr(resp, "status", 200)
                if status != 200:
                    raise ResolutionError(rate_limit_hint.format(status=status))
                data = json.load(resp)
        except urllib.error.HTTPError as e:
            raise ResolutionError(rate_limit_hint.format(status=e.code)) from e
        except urllib.error.URLError as e:
            raise ResolutionError(f"无法访问 release API {endpoint}: {e.reason}") from e
        except (ValueError, OSError, http.client.HTTPException) as e:
            logger.error("解码 releases/latest 响应失败: %s", endpoint, extra=_STAGE)
            raise ResolutionError(f"release API 响应无法解析 ({endpoint}): {e}") from e

        try:
            return _parse_release(data)
        except (KeyError, TypeError) as e:
            raise ResolutionError(f"release API 响应格式错误 ({endpoint}): {e}") from e

    def choose(
        self, candidates: Sequence[ReleaseAsset], release: Release | None = None,
    ) -> ReleaseAsset:
        """从候选中选定唯一资产

        非交互模式: 去重后恰好一个资产时直接使用，零个或多个时报错，不做默认选择。
        交互模式: 列出带序号的候选，直到输入合法序号为止。
        """
        if not candidates:
            available = ", ".join(a.name for a in release.assets) if release else ""
            raise ResolutionError(
                "没有找到匹配当前操作系统和架构 "
                f"({'/'.join(self.platform_tokens)}) 的资产。"
                f"可用资产: [{available}]，请直接提供下载 URL。"
            )

        if not self.interactive:
            distinct = list(dict.fromkeys(candidates))
            if len(distinct) == 1:
                return distinct[0]
            raise ResolutionError(
                f"非交互模式下有 {len(distinct)} 个候选资产，无法自动选择: "
                f"{[a.name for a in distinct]}。请直接提供下载 URL。"
            )

        self.echo("以下资产匹配当前操作系统和架构:")
        for i, asset in enumerate(candidates):
            self.echo(f"{i}) {asset.name}")

        while True:
            idx = self.prompt("请选择要安装的资产")
            if 0 <= idx < len(candidates):
                return candidates[idx]
            self.echo(f"序号超出范围，请输入 0-{len(candidates) - 1}")
