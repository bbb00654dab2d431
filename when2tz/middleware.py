import logging
import re
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_SCHEDULE_PATH = re.compile(r"^/api/schedules/([^/]+)")


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Debug log of every request with its duration and schedule id."""

    def __init__(self, app, logger_name: str = "when2tz.http", slow_ms: int = 500):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)
        self._slow_ms = slow_ms

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        path = request.url.path
        method = request.method
        match = _SCHEDULE_PATH.match(path)
        schedule_id = match.group(1) if match else "-"
        self._logger.debug("http.request start method=%s path=%s schedule=%s", method, path, schedule_id)
        try:
            response: Response = await call_next(request)
        except Exception as e:
            dur_ms = int((time.perf_counter() - start) * 1000)
            self._logger.warning("http.request error method=%s path=%s schedule=%s dur_ms=%s err=%r",
                                 method, path, schedule_id, dur_ms, e)
            raise
        dur_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Response-Time-Ms"] = str(dur_ms)
        level = logging.INFO if dur_ms >= self._slow_ms else logging.DEBUG
        self._logger.log(level, "http.request end method=%s path=%s schedule=%s status=%s dur_ms=%s",
                         method, path, schedule_id, response.status_code, dur_ms)
        return response
