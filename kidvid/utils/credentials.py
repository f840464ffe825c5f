import threading
from typing import Iterable, Tuple

from kidvid.errors import NoCredentialsConfigured
from kidvid.utils.logging_setup import configure_logging_from_env

logger = configure_logging_from_env(__name__)


class CredentialPool:
    """Ordered, immutable set of API keys with a shared rotation cursor.

    Only the cursor moves; a key that was denied is simply skipped for the
    rest of that call and may be handed out again later.
    """

    def __init__(self, credentials: Iterable[str]):
        self._credentials: Tuple[str, ...] = tuple(credentials)
        if not self._credentials:
            raise NoCredentialsConfigured()
        self._cursor = 0
        self._lock = threading.Lock()
        logger.debug("CredentialPool initialized | size=%d", len(self._credentials))

    def __len__(self) -> int:
        return len(self._credentials)

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    @property
    def credentials(self) -> Tuple[str, ...]:
        return self._credentials

    def current(self) -> str:
        with self._lock:
            return self._credentials[self._cursor % len(self._credentials)]

    def advance(self) -> None:
        with self._lock:
            self._cursor += 1
            cursor = self._cursor
        logger.info("credential_rotated cursor=%d slot=%d", cursor, cursor % len(self._credentials))
