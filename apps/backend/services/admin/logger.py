import logging
import time
from typing import Any, Dict

from fastapi import Request, Response

log = logging.getLogger("epunch.http")

SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "x-api-key",
    "apikey",
}

# polled constantly by uptime checks
QUIET_PATHS = ("/health",)


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    return {
        k: "***masked***" if k.lower() in SENSITIVE_HEADERS else v
        for k, v in headers.items()
    }


def log_request_response(request: Request, response: Response, start_time: float) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "method": request.method,
        "path": request.url.path,
        "status_code": response.status_code,
        "duration_ms": int((time.time() - start_time) * 1000),
        "client": request.client.host if request.client else None,
        "headers": mask_headers(dict(request.headers)),
    }

    if response.status_code >= 500:
        log.error(entry)
    elif request.url.path.startswith(QUIET_PATHS):
        log.debug(entry)
    else:
        log.info(entry)
    return entry


async def request_logging_middleware(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    log_request_response(request, response, start_time)
    return response
