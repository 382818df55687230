"""
Logging setup for the provider chains.

setup_logging() configures the root handler once per process. Chains log
through a ChainLogger, a LoggerAdapter that tags each line with the request
id and chain name, both in the message prefix and as record attributes the
JSON formatter emits as fields:

    [req:1f0c9a2b] [Chain:ai] gemini/gemini-2.5-flash/primary failed after 812ms: ...
"""

import json
import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

_CONTEXT_FIELDS = ("request_id", "chain")


class ChainLogger(logging.LoggerAdapter):
    """Tags records with the request id (first 8 chars) and chain name."""

    def __init__(self, logger: logging.Logger, request_id: Optional[str] = None, chain: Optional[str] = None):
        super().__init__(logger, {"request_id": request_id, "chain": chain})
        self.prefix = " ".join(
            part for part in (
                f"[req:{request_id[:8]}]" if request_id else None,
                f"[{chain}]" if chain else None,
            ) if part
        )

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        if self.prefix:
            msg = f"{self.prefix} {msg}"
        return msg, kwargs


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with chain context when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value:
                entry[name] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: "simple" for humans, "json" for log aggregators
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(log_level)

    # HTTP client libraries are chatty at INFO
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str, request_id: Optional[str] = None, chain: Optional[str] = None) -> ChainLogger:
    """ChainLogger over the module logger `name`."""
    return ChainLogger(logging.getLogger(name), request_id=request_id, chain=chain)
