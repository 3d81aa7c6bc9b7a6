import logging
import time

from django.conf import settings
from django.utils.deprecation import MiddlewareMixin


class RequestTimingMiddleware(MiddlewareMixin):
    """
    Times requests under the prefixes in PERFORMANCE_API_PREFIXES and logs
    them to "{short_name}_performance". Requests slower than
    SLOW_REQUEST_THRESHOLD_SEC are logged as warnings.
    """

    def process_request(self, request):
        for prefix, short_name in settings.PERFORMANCE_API_PREFIXES.items():
            if request.path.startswith(prefix):
                request._timing_start = time.perf_counter()
                request._timing_name = short_name
                return

    def process_response(self, request, response):
        start = getattr(request, "_timing_start", None)
        if start is None:
            return response

        duration = time.perf_counter() - start
        logger = logging.getLogger(f"{request._timing_name}_performance")
        line = (
            f"{request.method} {request.path} took {duration:.3f}s "
            f"- Status {response.status_code}"
        )
        if duration > settings.SLOW_REQUEST_THRESHOLD_SEC:
            logger.warning(f"Slow request: {line}")
        else:
            logger.info(line)

        response["X-Response-Time"] = f"{duration:.3f}s"
        return response
