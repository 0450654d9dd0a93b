"""
Account Management Module

Manages the account lifecycle: opening accounts with a generated number,
unregistering them, and ownership lookups. Accounts are never physically
deleted; unregistering is a one-way status change so that their numbers stay
reserved and their transactions stay queryable.
"""

import threading
from typing import List, Optional

from .models import AccountUser, Account, AccountStatus
from .stores import UserStore, AccountStore
from .account_numbers import AccountNumberGenerator
from .locks import AccountLockCoordinator
from .clock import Clock, SystemClock
from .config import AccountServiceConfig, get_config
from .errors import AccountServiceError, ErrorCode
from .logging_config import get_logger, log_action


class AccountManager:
    """
    Account registry: creation limits, deletion preconditions and lookups
    """

    def __init__(
        self,
        user_store: UserStore,
        account_store: AccountStore,
        number_generator: AccountNumberGenerator,
        clock: Optional[Clock] = None,
        config: Optional[AccountServiceConfig] = None,
        lock_coordinator: Optional[AccountLockCoordinator] = None
    ):
        self.user_store = user_store
        self.account_store = account_store
        self.number_generator = number_generator
        self.clock = clock or SystemClock()
        self.config = config or get_config()
        self.lock_coordinator = lock_coordinator or AccountLockCoordinator()
        self.logger = get_logger("account_service.accounts")
        # Serializes the count check, number generation and insert
        self._create_lock = threading.Lock()

    def create_account(self, user_id: int, initial_balance: int) -> Account:
        """
        Open a new account for a user

        Args:
            user_id: ID of account owner
            initial_balance: Opening balance, must not be negative

        Returns:
            Created Account in IN_USE state

        Raises:
            AccountServiceError: USER_NOT_FOUND, INVALID_REQUEST,
                MAX_ACCOUNT_PER_USER_10 or ACCOUNT_NUMBER_EXHAUSTED
        """
        user = self._get_user(user_id)

        if initial_balance < 0:
            raise AccountServiceError(
                ErrorCode.INVALID_REQUEST, "Initial balance cannot be negative"
            )

        with self._create_lock:
            active_accounts = self.account_store.count_by_user(user.id, AccountStatus.IN_USE)
            if active_accounts >= self.config.max_accounts_per_user:
                raise AccountServiceError(ErrorCode.MAX_ACCOUNT_PER_USER_10)

            account = Account(
                id=None,
                user_id=user.id,
                account_number=self.number_generator.generate(user.id),
                status=AccountStatus.IN_USE,
                balance=initial_balance,
                registered_at=self.clock.now()
            )
            self.account_store.save(account)

        log_action(
            self.logger, "info", "Account created",
            user_id=user.id, action="create_account",
            account_number=account.account_number,
            resource=f"account:{account.id}",
            extra={"initial_balance": initial_balance}
        )
        return account

    def delete_account(self, user_id: int, account_number: str) -> Account:
        """
        Unregister an account

        The account must belong to the user, still be IN_USE and hold no
        balance.

        Raises:
            AccountServiceError: USER_NOT_FOUND, ACCOUNT_NOT_FOUND,
                USER_ACCOUNT_UN_MATCH, ACCOUNT_ALREADY_UNREGISTERED or
                BALANCE_NOT_EMPTY
        """
        user = self._get_user(user_id)

        with self.lock_coordinator.account_lock(account_number):
            account = self.get_account_by_number(account_number)

            if account.user_id != user.id:
                raise AccountServiceError(ErrorCode.USER_ACCOUNT_UN_MATCH)
            if not account.is_in_use:
                raise AccountServiceError(ErrorCode.ACCOUNT_ALREADY_UNREGISTERED)
            if account.balance > 0:
                raise AccountServiceError(ErrorCode.BALANCE_NOT_EMPTY)

            account.unregister(self.clock.now())
            self.account_store.save(account)

        log_action(
            self.logger, "info", "Account unregistered",
            user_id=user.id, action="delete_account",
            account_number=account.account_number,
            resource=f"account:{account.id}"
        )
        return account

    def get_accounts_by_user(self, user_id: int) -> List[Account]:
        """Get all accounts of a user, active and unregistered, by ascending id"""
        user = self._get_user(user_id)
        return self.account_store.find_by_user(user.id)

    def get_account(self, account_id: int) -> Account:
        """Get account by ID"""
        if account_id < 0:
            raise AccountServiceError(
                ErrorCode.INVALID_REQUEST, "Account id cannot be negative"
            )
        account = self.account_store.find_by_id(account_id)
        if not account:
            raise AccountServiceError(ErrorCode.ACCOUNT_NOT_FOUND)
        return account

    def get_account_by_number(self, account_number: str) -> Account:
        """Get account by account number"""
        account = self.account_store.find_by_account_number(account_number)
        if not account:
            raise AccountServiceError(ErrorCode.ACCOUNT_NOT_FOUND)
        return account

    def _get_user(self, user_id: int) -> AccountUser:
        user = self.user_store.find_user_by_id(user_id)
        if not user:
            raise AccountServiceError(ErrorCode.USER_NOT_FOUND)
        return user
