from django.core.cache import cache
from rest_framework.throttling import UserRateThrottle
import time
import logging

logger = logging.getLogger(__name__)


class BaseCacheThrottle(UserRateThrottle):
    """
    Base cache-based throttle. Subclasses only need to set `scope`.
    """

    def get_cache_key(self, request, view):
        """
        Generates a key like "throttle_{scope}_{user_id_or_ip}".
        """
        if request.user and request.user.is_authenticated:
            user_identifier = str(request.user.id)
        else:
            user_identifier = request.META.get("REMOTE_ADDR", "unknown")

        return f"throttle_{self.scope}_{user_identifier}"

    def allow_request(self, request, view):
        # If no rate is configured for this scope, skip throttling
        if self.rate is None:
            return True

        self.key = self.get_cache_key(request, view)
        if self.key is None:
            return True

        self.now = time.time()
        # Oldest timestamp first
        self.history = cache.get(self.key, [])

        # Remove timestamps that are older than the window
        while self.history and self.history[0] <= self.now - self.duration:
            self.history.pop(0)

        if len(self.history) >= self.num_requests:
            logger.warning(
                f"Rate limit exceeded for {self.scope}: "
                f"key={self.key}, requests={len(self.history)}, "
                f"limit={self.num_requests}, window={self.duration}s"
            )
            return False  # Tell DRF to call its throttled logic

        self.history.append(self.now)
        cache.set(self.key, self.history, self.duration)
        return True

    def wait(self):
        """
        Seconds before the next request is allowed: window - (now - oldest).
        """
        if not getattr(self, "history", None):
            return None
        remaining = self.duration - (self.now - self.history[0])
        return max(remaining, 0)
