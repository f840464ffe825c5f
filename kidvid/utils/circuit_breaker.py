import pybreaker

from kidvid.errors import QuotaDenied, UpstreamError
from kidvid.utils.logging_setup import configure_logging_from_env

logger = configure_logging_from_env(__name__)


class LogListener(pybreaker.CircuitBreakerListener):
    def state_change(self, cb, old_state, new_state):
        logger.warning(
            "breaker_state name=%s from=%s to=%s",
            cb.name, getattr(old_state, "name", old_state), getattr(new_state, "name", new_state),
        )


def is_request_error(exc: BaseException) -> bool:
    return isinstance(exc, UpstreamError) and exc.status is not None and 400 <= exc.status < 500


def make_breaker(name: str, fail_max: int = 5, reset_timeout: int = 60) -> pybreaker.CircuitBreaker:
    """Breaker for one upstream. Only outages count toward opening it:
    quota denials belong to the key and other 4xx answers to the request."""
    return pybreaker.CircuitBreaker(
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        exclude=[QuotaDenied, is_request_error],
        listeners=[LogListener()],
        throw_new_error_on_trip=False,
        name=name,
    )
