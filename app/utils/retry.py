# app/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import redis

from app.domain.exceptions import ConcurrencyError
from app.utils.settings import CART_RETRY_ATTEMPTS


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


#optimistic locking - the whole cart operation is replayed after a version conflict
def concurrency_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(CART_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception_type(ConcurrencyError),
    )
