"""Persistence of order history and loyalty state.

``Storage`` is the contract the checkout depends on. ``KeyValueStorage``
implements it on top of any string key-value mapping (a ``dict`` in tests, a
``shelve`` file for the CLI). Each user's loyalty state and order history live
in one ``UserLedger`` document under one key, so every write is a single
backend assignment that either lands whole or not at all.
"""

import threading
from collections.abc import Callable, MutableMapping
from typing import Protocol, TypeVar

from loguru import logger
from pydantic import ValidationError

from .errors import PersistenceError, StaleLoyaltyStateError
from .models import LoyaltyState, Order, UserLedger

T = TypeVar("T")

LEDGER_KEY_PREFIX = "ledger_"


class Storage(Protocol):
    def list_users(self) -> list[str]: ...

    def load_order_history(self, user_id: str) -> list[Order]: ...

    def append_order(self, user_id: str, order: Order) -> None: ...

    def load_loyalty_state(self, user_id: str) -> LoyaltyState: ...

    def save_loyalty_state(
        self, user_id: str, state: LoyaltyState, expected_version: int
    ) -> LoyaltyState: ...

    def commit_order(
        self,
        user_id: str,
        order: Order,
        state: LoyaltyState,
        expected_version: int,
    ) -> LoyaltyState:
        """Append ``order`` and save ``state`` together, or neither."""
        ...


def ledger_key(user_id: str) -> str:
    return f"{LEDGER_KEY_PREFIX}{user_id}"


class KeyValueStorage:
    """``Storage`` over a ``MutableMapping[str, str]`` of JSON ledgers.

    Every write bumps the loyalty version, and writes are serialized with a
    lock so the version check and the write happen as one step within this
    process.
    """

    def __init__(self, backend: MutableMapping[str, str] | None = None) -> None:
        self._backend: MutableMapping[str, str] = backend if backend is not None else {}
        self._lock = threading.RLock()

    def _call(self, action: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except PersistenceError:
            raise
        except (ValidationError, ValueError) as e:
            raise PersistenceError(f"Corrupt data while trying to {action}") from e
        except Exception as e:
            raise PersistenceError(f"Storage failed to {action}") from e

    # -- reads --------------------------------------------------------------

    def list_users(self) -> list[str]:
        def read() -> list[str]:
            return sorted(
                key.removeprefix(LEDGER_KEY_PREFIX)
                for key in self._backend.keys()
                if key.startswith(LEDGER_KEY_PREFIX)
            )

        return self._call("list users", read)

    def load_ledger(self, user_id: str) -> UserLedger:
        def read() -> UserLedger:
            raw = self._backend.get(ledger_key(user_id))
            if raw is None:
                return UserLedger()
            return UserLedger.model_validate_json(raw)

        return self._call(f"load ledger for {user_id!r}", read)

    def load_order_history(self, user_id: str) -> list[Order]:
        """Orders for ``user_id``, newest first."""
        return self.load_ledger(user_id).history

    def load_loyalty_state(self, user_id: str) -> LoyaltyState:
        return self.load_ledger(user_id).loyalty

    # -- writes -------------------------------------------------------------

    def append_order(self, user_id: str, order: Order) -> None:
        """Append without touching points; still bumps the loyalty version."""
        with self._lock:
            ledger = self.load_ledger(user_id)
            loyalty = ledger.loyalty.model_copy(update={"version": ledger.loyalty.version + 1})
            self._write(user_id, UserLedger(loyalty=loyalty, history=[order] + ledger.history))

    def save_loyalty_state(
        self, user_id: str, state: LoyaltyState, expected_version: int
    ) -> LoyaltyState:
        with self._lock:
            ledger = self._checked_ledger(user_id, expected_version)
            saved = state.model_copy(update={"version": expected_version + 1})
            self._write(user_id, UserLedger(loyalty=saved, history=ledger.history))
            return saved

    def commit_order(
        self,
        user_id: str,
        order: Order,
        state: LoyaltyState,
        expected_version: int,
    ) -> LoyaltyState:
        with self._lock:
            ledger = self._checked_ledger(user_id, expected_version)
            saved = state.model_copy(update={"version": expected_version + 1})
            self._write(user_id, UserLedger(loyalty=saved, history=[order] + ledger.history))

            logger.info(
                "Committed order {} for {} (loyalty version {} -> {})",
                order.id,
                user_id,
                expected_version,
                saved.version,
            )
            return saved

    # -- helpers ------------------------------------------------------------

    def _checked_ledger(self, user_id: str, expected_version: int) -> UserLedger:
        ledger = self.load_ledger(user_id)
        if ledger.loyalty.version != expected_version:
            logger.warning(
                "Stale loyalty write for {}: expected version {}, found {}",
                user_id,
                expected_version,
                ledger.loyalty.version,
            )
            raise StaleLoyaltyStateError(user_id, expected_version, ledger.loyalty.version)
        return ledger

    def _write(self, user_id: str, ledger: UserLedger) -> None:
        key = ledger_key(user_id)

        def write() -> None:
            self._backend[key] = ledger.model_dump_json()

        self._call(f"write {key!r}", write)
