"""
Service Wiring

Builds the storage backend, stores and services into one object that the
API layer (or any other caller) works against.
"""

import random
from typing import Optional

from .storage import StorageInterface, InMemoryStorage, SQLiteStorage
from .stores import UserStore, AccountStore, TransactionStore
from .models import AccountUser
from .account_numbers import AccountNumberGenerator
from .accounts import AccountManager
from .locks import AccountLockCoordinator
from .transactions import BalanceTransactionEngine, TransactionQuery
from .clock import Clock, SystemClock
from .config import AccountServiceConfig, get_config


def create_storage(config: AccountServiceConfig) -> StorageInterface:
    """Create the storage backend selected by configuration"""
    if config.storage_backend == "memory":
        return InMemoryStorage()
    if config.storage_backend == "sqlite":
        return SQLiteStorage(config.database_path)
    raise ValueError(f"Unknown storage backend: {config.storage_backend}")


class AccountSystem:
    """Account service with all components initialized"""

    def __init__(
        self,
        storage: Optional[StorageInterface] = None,
        config: Optional[AccountServiceConfig] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None
    ):
        self.config = config or get_config()
        self.storage = storage or create_storage(self.config)
        self.clock = clock or SystemClock()

        self.user_store = UserStore(self.storage)
        self.account_store = AccountStore(self.storage)
        self.transaction_store = TransactionStore(self.storage)

        self.number_generator = AccountNumberGenerator(
            self.account_store, rng=rng,
            max_attempts=self.config.account_number_max_attempts
        )
        self.lock_coordinator = AccountLockCoordinator()
        self.account_manager = AccountManager(
            self.user_store, self.account_store, self.number_generator,
            clock=self.clock, config=self.config,
            lock_coordinator=self.lock_coordinator
        )
        self.transaction_engine = BalanceTransactionEngine(
            self.account_store, self.transaction_store, self.lock_coordinator,
            clock=self.clock, config=self.config
        )
        self.transaction_query = TransactionQuery(self.transaction_store)

    def register_user(self, name: str) -> AccountUser:
        """Add an account owner (users are otherwise managed externally)"""
        user = AccountUser(id=None, name=name, created_at=self.clock.now())
        return self.user_store.save(user)

    def close(self) -> None:
        self.storage.close()
