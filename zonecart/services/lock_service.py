# zonecart/services/lock_service.py
import uuid
from contextlib import contextmanager

import redis
from redis.exceptions import RedisError

from zonecart.domain.errors import ConcurrencyConflict
from zonecart.utils.retry import redis_retry
from zonecart.utils.settings import REDIS_URL, CART_LOCK_TTL_SECONDS, ZONE_SYNC_LOCK_TTL_SECONDS
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nie mozna wcisnac sie miedzy GET a DEL
#wiec lock zwalnia tylko ten kto go wzial (token)


def cart_lock_key(cart_id: int) -> str:
    return f"cart:{cart_id}:lock"


def zone_sync_lock_key(zone_id: int) -> str:
    return f"zone:{zone_id}:sync"


class LockService:
    """
    -lock na koszyk (zmiana lokalizacji vs checkout)
    -lock na sweep strefy (jeden sweep na strefe naraz)
    -zwalnianie przez lua, tylko z wlasnym tokenem
    """

    def __init__(self, url: str | None = None, client=None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        logger.info(f"Acquire lock {key}")
        #SET cart:1:lock "<token>" NX EX 30
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True,  #tylko jesli klucz nie istnieje
                ex=ttl,  #wygasa sam, nawet jak proces padnie
            )
        )

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def hold(self, key: str, ttl: int, conflict_message: str):
        token = uuid.uuid4().hex
        if not self.acquire(key, token, ttl):
            raise ConcurrencyConflict(conflict_message)
        try:
            yield token
        finally:
            try:
                self.release(key, token)
            except RedisError as e:
                # klucz i tak wygasnie po ttl
                logger.warning(f"Failed to release lock {key}: {e}")

    def cart_lock(self, cart_id: int):
        return self.hold(
            cart_lock_key(cart_id),
            CART_LOCK_TTL_SECONDS,
            f"Koszyk {cart_id} jest wlasnie modyfikowany, sprobuj ponownie",
        )

    def zone_sync_lock(self, zone_id: int):
        return self.hold(
            zone_sync_lock_key(zone_id),
            ZONE_SYNC_LOCK_TTL_SECONDS,
            f"Synchronizacja strefy {zone_id} juz trwa",
        )
