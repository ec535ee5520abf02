import logging
import sys
import time

from fastapi import Request

from config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LINE_LENGTH = 80

access_logger = logging.getLogger("api.access")


def configure_logging(level: str = None) -> None:
    """Configure the root logger to write to stdout."""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def format_request_line(method: str, path: str, status_code: int, duration_ms: int) -> str:
    line = f"{method} {path} {status_code} in {duration_ms}ms"
    if len(line) > MAX_LINE_LENGTH:
        line = line[: MAX_LINE_LENGTH - 1] + "…"
    return line


async def log_requests(request: Request, call_next):
    # Only API traffic is logged; probes and docs stay quiet.
    start = time.perf_counter()
    response = await call_next(request)
    path = request.url.path
    if path.startswith("/api"):
        duration_ms = int((time.perf_counter() - start) * 1000)
        access_logger.info(format_request_line(request.method, path, response.status_code, duration_ms))
    return response
