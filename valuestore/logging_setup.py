"""Logging configuration and request logging.

All modules log through `logging.getLogger(__name__)`. `create_app` calls
`configure_logging` so every record shares one handler and format, and
the application installs `log_requests` as HTTP middleware to emit one line
per request.
"""

import logging
import time

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
HANDLER_NAME = "valuestore"

logger = logging.getLogger("valuestore.access")


def configure_logging(level="INFO"):
    """Install a stream handler on the root logger (once) and set the level."""
    root = logging.getLogger()
    if not any(h.name == HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.name = HANDLER_NAME
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


async def log_requests(request, call_next):
    """Log method, path, status and duration; severity follows the status code."""
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = 1000 * (time.perf_counter() - start)

    status = response.status_code
    if status < 400:
        log = logger.info
    elif status < 500:
        log = logger.warning
    else:
        log = logger.error

    log("%s %s %d %.2fms", request.method, request.url.path, status, elapsed_ms)
    return response
