import logging
import time
from functools import wraps

logger = logging.getLogger(__name__)


def retry(exception_to_check, tries=4, delay=3, backoff=2, cancel_event=None):
    """
    Call the decorated function again while it raises exception_to_check.
    The wait starts at delay seconds and is multiplied by backoff after every
    failure. The exception of the last try is raised.

    Args:
        exception_to_check: Exception class or tuple of classes to retry on
        tries (int): Number of calls before giving up, 1 never retries
        delay (int): Seconds to wait after the first failure
        backoff (int): Multiplier of the wait
        cancel_event (threading.Event): Once set the failure is raised at
            once instead of being retried
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            wait = delay
            for attempt in range(1, tries):
                try:
                    return func(*args, **kwargs)
                except exception_to_check as ex:
                    logger.warning(
                        f"{func.__name__} failed (try {attempt}/{tries}): {ex}, "
                        f"retrying in {wait}s"
                    )
                    if cancel_event is None:
                        time.sleep(wait)
                    elif cancel_event.wait(wait):
                        raise
                    wait *= backoff
            return func(*args, **kwargs)

        return wrapper

    return decorator
