"""Unified logger for the whole project."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from illume.config.settings import settings


MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 3


def _normalize_level(raw: str) -> int:
    candidate = str(raw or "WARNING").strip().upper()
    return {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
    }.get(candidate, logging.WARNING)


def _build_logger() -> logging.Logger:
    configured_logger = logging.getLogger("illume")
    if configured_logger.handlers:
        return configured_logger

    resolved_level = _normalize_level(settings.log_level)
    configured_logger.setLevel(resolved_level)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # stderr only: stdout carries the generated text
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(resolved_level)
    stream_handler.setFormatter(formatter)
    configured_logger.addHandler(stream_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            rotating_handler = RotatingFileHandler(
                log_path,
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
            rotating_handler.setLevel(resolved_level)
            rotating_handler.setFormatter(formatter)
            configured_logger.addHandler(rotating_handler)
        except OSError:
            configured_logger.warning("cannot open log file path=%s, logging to stderr only", log_path)

    configured_logger.propagate = False
    return configured_logger


def set_level(raw: str) -> None:
    level = _normalize_level(raw)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


logger = _build_logger()
