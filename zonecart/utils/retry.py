# zonecart/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type, before_sleep_log
import logging
import requests
import redis

from zonecart.utils.settings import RETRY_ATTEMPTS
from zonecart.utils.logging import get_logger

logger = get_logger(__name__)

# tylko bledy przejsciowe, 4xx od geocodera nie sa wyjatkiem
TRANSIENT_HTTP_ERRORS = (requests.ConnectionError, requests.Timeout, requests.HTTPError)
TRANSIENT_REDIS_ERRORS = (redis.ConnectionError, redis.TimeoutError)


def http_retry(attempts: int = RETRY_ATTEMPTS):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(TRANSIENT_HTTP_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def redis_retry(attempts: int = RETRY_ATTEMPTS):
    # lock musi szybko odpowiedziec, krotszy backoff niz dla http
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        retry=retry_if_exception_type(TRANSIENT_REDIS_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
