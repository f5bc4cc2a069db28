"""Log handler wiring driven by the ``logging`` block of config.json."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, List

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MASK = "***"

# Third-party loggers that are chatty at INFO.
QUIET_LOGGERS = ("telethon", "httpx")


class MaskingFormatter(logging.Formatter):
    """Formatter that replaces known secret values with a mask."""

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        self.secrets = tuple(secret for secret in secrets if secret)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        for secret in self.secrets:
            line = line.replace(secret, MASK)
        return line


def _file_handler(file_cfg: dict, project_root: str) -> logging.Handler:
    path = file_cfg.get("path", "logs/gabeln.log")
    if not os.path.isabs(path):
        path = os.path.join(project_root, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def build_handlers(config: dict, secrets: Iterable[str], project_root: str) -> List[logging.Handler]:
    """Create the console and file handlers enabled in ``config``."""

    formatter = MaskingFormatter(secrets if config.get("redact", True) else ())
    handlers: List[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_file_handler(file_cfg, project_root))

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: dict, secrets: Iterable[str], project_root: str) -> None:
    if not config.get("enabled", True):
        return

    handlers = build_handlers(config, secrets, project_root)
    if not handlers:
        return

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=handlers)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
