"""Per-client request limit on the /api routes: N requests per fixed window."""
import logging
import time

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

logger = logging.getLogger(__name__)


class ClientRateLimiter:
    """Counts hits per client key in process memory."""

    def __init__(self, max_requests: int, window_seconds: int):
        self.item = RateLimitItemPerSecond(max_requests, window_seconds)
        self.strategy = FixedWindowRateLimiter(MemoryStorage())

    def hit(self, client: str) -> bool:
        """Count one request; False once the client is over its limit for this window."""
        allowed = self.strategy.hit(self.item, client)
        if not allowed:
            logger.warning("Rate limit exceeded for %s", client)
        return allowed

    def retry_after(self, client: str) -> int:
        reset_time, _ = self.strategy.get_window_stats(self.item, client)
        return max(int(reset_time - time.time()), 0)
