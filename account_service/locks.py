"""
Account Lock Coordination

Per-account-number mutual exclusion for balance-mutating operations. A caller
that cannot take the lock blocks until the current holder releases it; there
is no timeout and no try-lock. Different account numbers never contend.

Only one account lock is ever held at a time by an operation, so no lock
ordering is defined.
"""

import threading
from contextlib import contextmanager
from typing import Callable, Dict, TypeVar

from .logging_config import get_logger

T = TypeVar("T")


class _LockEntry:
    """A lock plus the number of threads holding or waiting for it"""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class AccountLockCoordinator:
    """
    Grants exclusive access per account number.

    Entries are reference counted and dropped once nobody holds or waits for
    them, so the registry only contains accounts with in-flight operations.
    """

    def __init__(self):
        self._entries: Dict[str, _LockEntry] = {}
        self._registry_lock = threading.Lock()
        self.logger = get_logger("account_service.locks")

    def _checkout(self, account_number: str) -> _LockEntry:
        with self._registry_lock:
            entry = self._entries.get(account_number)
            if entry is None:
                entry = _LockEntry()
                self._entries[account_number] = entry
            entry.users += 1
            return entry

    def _checkin(self, account_number: str, entry: _LockEntry) -> None:
        with self._registry_lock:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[account_number]

    @contextmanager
    def account_lock(self, account_number: str):
        """Hold the account's lock for the duration of the with-block"""
        entry = self._checkout(account_number)
        try:
            entry.lock.acquire()
            try:
                self.logger.debug("Account lock acquired", extra={"account_number": account_number})
                yield
            finally:
                entry.lock.release()
                self.logger.debug("Account lock released", extra={"account_number": account_number})
        finally:
            self._checkin(account_number, entry)

    def with_account_lock(self, account_number: str, operation: Callable[[], T]) -> T:
        """Run operation while holding the account's lock and return its result"""
        with self.account_lock(account_number):
            return operation()

    def is_locked(self, account_number: str) -> bool:
        """Whether some operation currently holds the account's lock"""
        with self._registry_lock:
            entry = self._entries.get(account_number)
            return entry is not None and entry.lock.locked()

    def active_locks(self) -> int:
        """Number of account numbers with a holder or waiter"""
        with self._registry_lock:
            return len(self._entries)
