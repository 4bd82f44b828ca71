"""infpm 日志配置

日志统一写到 stderr，stdout 留给交互提示与命令结果。
流水线各阶段通过 extra={"stage": ...} 标注所处阶段
（resolve / acquire / extract / layout / link / cleanup），
文本与 JSON 两种格式都会带上该字段，便于定位致命错误发生在哪一步。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Mapping
from datetime import datetime, timezone

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(stage)-8s %(name)s: %(message)s"
NO_STAGE = "-"


class StageFilter(logging.Filter):
    """为未标注阶段的记录补上默认 stage，保证格式串可用"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "stage"):
            record.stage = NO_STAGE
        return True


class JSONFormatter(logging.Formatter):
    """每条记录一行 JSON: timestamp / level / stage / logger / message"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "stage": getattr(record, "stage", NO_STAGE),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器，重复调用会替换已有 handlers"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(StageFilter())
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def setup_logging_from_env(environ: Mapping[str, str] | None = None) -> None:
    """按 INFPM_LOG_LEVEL / INFPM_LOG_JSON=1 配置日志"""
    env = os.environ if environ is None else environ
    setup_logging(
        level=env.get("INFPM_LOG_LEVEL", "INFO"),
        json_output=env.get("INFPM_LOG_JSON", "") == "1",
    )
