import uuid
from contextlib import contextmanager

import redis
from app.domain.exceptions import ConflictError
from app.utils.retry import redis_retry
from app.utils.settings import REDIS_URL, CHECKOUT_LOCK_TTL_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

#LUA compare and delete, atomic
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis runs the whole script as one uninterruptible step,
#nobody can squeeze in between GET and DEL, so only the owner's token deletes the key


class LockService:
    """
    -per-user checkout lock (one checkout of a cart at a time)
    -release only by the token owner
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def checkout_key(user_id: int) -> str:
        return f"checkout:{user_id}:lock"

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        logger.info(f"Acquire lock {key}")
        #SET checkout:7:lock "<token>" NX EX 60
        return bool(self.redis.set(
            name=key,
            value=token,
            nx=True, #only if the key does not exist yet
            ex=ttl, #expires on its own if the holder dies
        ))

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def checkout_lock(self, user_id: int, ttl: int = CHECKOUT_LOCK_TTL_SECONDS):
        key = self.checkout_key(user_id)
        token = uuid.uuid4().hex
        if not self.acquire(key, token, ttl):
            raise ConflictError("A checkout for this cart is already in progress")
        try:
            yield token
        finally:
            self.release(key, token)
