# services/logger.py
# 日志：SCF 收集 stdout，只挂一个 stdout handler
# LOG_FORMAT=json（默认）每行一个 JSON；LOG_FORMAT=text 输出普通文本行
import datetime
import json
import logging
import os
import sys

_CONFIGURED = False

# extra={...} 里允许带出的字段
_EXTRA_FIELDS = ("route", "token", "status", "guild_id", "action")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(log_level: str = None, log_format: str = None) -> None:
    """每个容器只配置一次；参数缺省时读 LOG_LEVEL（INFO）/ LOG_FORMAT（json）"""
    global _CONFIGURED
    if _CONFIGURED:
        return

    level_name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = (log_format or os.getenv("LOG_FORMAT", "json")).lower()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if fmt == "json":
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)-8s %(name)s | %(message)s"))
    root_logger.addHandler(console_handler)

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
