"""Transaction management.

A TransactionManager pins one pooled connection for the duration of a
``with`` block. Auto-commits on success, auto-rolls-back on exception.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from row_mapper.core.connection import ConnectionManager
from row_mapper.core.exceptions import TransactionStateError

logger = logging.getLogger(__name__)


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionManager:
    """Synchronous transaction context manager.

    Args:
        connection_manager: Pool the connection is taken from.
        bind: Called with this manager on enter and with ``None`` on exit, so
            the owner can route its statements through the pinned connection.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        bind: Callable[[TransactionManager | None], None] | None = None,
    ) -> None:
        self._connection_manager = connection_manager
        self._bind = bind
        self._connection: Any = None
        self._state = _TxState.IDLE

    @property
    def connection(self) -> Any:
        return self._connection

    @property
    def state(self) -> str:
        return self._state.value

    def __enter__(self) -> TransactionManager:
        if self._state != _TxState.IDLE:
            raise TransactionStateError(self._state.value, "begin")
        self._connection = self._connection_manager.acquire()
        if self._bind is not None:
            self._bind(self)
        self._state = _TxState.ACTIVE
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    logger.warning("Rolling back transaction after %s", exc_type.__name__)
                    self._connection.rollback()
                    self._state = _TxState.ROLLED_BACK
                else:
                    self._connection.commit()
                    self._state = _TxState.COMMITTED
        finally:
            if self._bind is not None:
                self._bind(None)
            self._connection_manager.release(self._connection)

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        self.check_active("commit")
        self._connection.commit()
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        self.check_active("rollback")
        self._connection.rollback()
        self._state = _TxState.ROLLED_BACK

    def is_active(self) -> bool:
        return self._state == _TxState.ACTIVE

    def check_active(self, action: str) -> None:
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, action)
