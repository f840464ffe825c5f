import time
import redis
from kidvid.utils.logging_setup import configure_logging_from_env

logger = configure_logging_from_env(__name__)

class RateLimiter:
    """
    Fixed-window request counter kept in Redis.
    """
    def __init__(self, client: redis.StrictRedis, key_prefix: str, rate: int, per_seconds: int):
        """
        :param client: Redis connection
        :param key_prefix: unique key prefix (eg. "ingress")
        :param rate: requests allowed per window, 0 disables limiting
        :param per_seconds: window length in seconds
        """
        self.client = client
        self.key_prefix = key_prefix
        self.rate = rate
        self.per_seconds = per_seconds

    def allow(self, identity: str) -> bool:
        """
        :param identity: client IP or other caller identifier
        :return: True if allowed, False if limited
        """
        if self.rate <= 0:
            return True
        window = int(time.time()) // self.per_seconds
        key = f"rl:{self.key_prefix}:{identity}:{window}"
        try:
            p = self.client.pipeline()
            p.incr(key, 1)
            p.expire(key, self.per_seconds)
            count, _ = p.execute()
        except redis.RedisError as e:
            # no redis, no limiting
            logger.error("rate_limit_backend_fail key=%s err=%s", key, e)
            return True
        if count > self.rate:
            logger.warning("rate_limit_exceeded key=%s count=%d", key, count)
            return False
        return True
