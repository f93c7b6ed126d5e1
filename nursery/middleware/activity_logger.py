# nursery/middleware/activity_logger.py
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class ActivityLoggerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)

        # Only log POST, PUT, PATCH, DELETE (modify) requests
        if request.method in ["POST", "PUT", "PATCH", "DELETE"]:
            # plain string, the ORM user is detached once the session closes
            user_email = getattr(request.state, "user_email", None)
            logger.info(
                "%s %s -> %s by %s in %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                user_email or "anonymous",
                (time.perf_counter() - started) * 1000,
            )

        return response
