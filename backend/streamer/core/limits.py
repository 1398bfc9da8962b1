from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ClientLimiter:
    """
    Counts open event streams against the advisory ``sse_max_clients`` setting.
    In-memory and per process; multi-instance deployments need a shared store.
    """

    def __init__(self, max_clients: int) -> None:
        self._max_clients = max_clients
        self._active = 0

    @property
    def active(self) -> int:
        return self._active

    @property
    def max_clients(self) -> int:
        return self._max_clients

    def acquire(self) -> bool:
        if self._active >= self._max_clients:
            logger.warning(
                "client limit reached",
                extra={"active": self._active, "max_clients": self._max_clients},
            )
            return False
        self._active += 1
        return True

    def release(self) -> None:
        if self._active > 0:
            self._active -= 1
