"""HTTP audit logging middleware."""
from __future__ import annotations

import logging
from pathlib import Path
from time import perf_counter
from typing import Optional

from fastapi import FastAPI, Request

from .config import get_settings

AUDIT_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def build_audit_logger(name: str, log_dir: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(f"audit.{name}")
    if logger.handlers:
        return logger

    directory = Path(log_dir or get_settings().log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    logger.setLevel(logging.INFO)
    handler = logging.FileHandler(directory / f"{name}.log")
    handler.setFormatter(logging.Formatter(AUDIT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger


def add_audit_middleware(app: FastAPI, name: str) -> None:
    """Log one line per request: method, path, status, client and latency."""

    logger = build_audit_logger(name)

    @app.middleware("http")
    async def audit_logger(request: Request, call_next):  # type: ignore[override]
        start = perf_counter()
        response = await call_next(request)
        duration_ms = (perf_counter() - start) * 1000
        client_ip = request.client.host if request.client else "unknown"
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s | status=%s | client=%s | duration=%.2fms",
            request.method,
            request.url.path,
            response.status_code,
            client_ip,
            duration_ms,
        )
        return response
