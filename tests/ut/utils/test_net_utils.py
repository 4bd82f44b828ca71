"""URL 工具测试"""

import pytest

from infpm.core.exceptions import ValidationError
from infpm.utils.net import url_basename, validate_url_scheme


class TestValidateUrlScheme:
    def test_http_ok(self) -> None:
        validate_url_scheme("http://example.com/tool.tar.gz")

    def test_https_ok(self) -> None:
        validate_url_scheme("https://github.com/alecks/infpm")

    @pytest.mark.parametrize("url", [
        "file:///etc/passwd",
        "ftp://evil.com/payload",
        "/local/path.tar.gz",
    ])
    def test_rejected(self, url: str) -> None:
        with pytest.raises(ValidationError, match="不允许的 URL 协议"):
            validate_url_scheme(url)

    def test_missing_host(self) -> None:
        with pytest.raises(ValidationError, match="主机名"):
            validate_url_scheme("https:///tool.tar.gz")

    def test_context_in_error(self) -> None:
        with pytest.raises(ValidationError, match="archive download"):
            validate_url_scheme("file:///x", context="archive download")


class TestUrlBasename:
    @pytest.mark.parametrize(("url", "expected"), [
        ("https://dl.example.com/a/b/tool.tar.gz", "tool.tar.gz"),
        ("https://dl.example.com/tool.tgz?token=1", "tool.tgz"),
        ("https://dl.example.com/", ""),
    ])
    def test_basename(self, url: str, expected: str) -> None:
        assert url_basename(url) == expected
