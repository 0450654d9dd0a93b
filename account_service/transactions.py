"""
Balance Transaction Module

Use and cancel of account balance. Every mutating call runs under the
account's exclusive lock, and every attempt leaves a Transaction record: a
SUCCESS record with the balance snapshot, or a FAIL record written under the
same lock before the error propagates to the caller. The balance update and
its SUCCESS record are written in one storage transaction.
"""

from datetime import timedelta
from typing import List, Optional
import time
import uuid

from .models import Account, Transaction, TransactionType, TransactionResult
from .stores import AccountStore, TransactionStore
from .locks import AccountLockCoordinator
from .clock import Clock, SystemClock
from .config import AccountServiceConfig, get_config
from .errors import AccountServiceError, ErrorCode
from .logging_config import get_logger, log_action


def new_transaction_id() -> str:
    """Opaque external transaction identifier"""
    return uuid.uuid4().hex


def _error_code(error: Exception) -> ErrorCode:
    if isinstance(error, AccountServiceError):
        return error.code
    return ErrorCode.INTERNAL_SERVER_ERROR


class TransactionQuery:
    """Read-only access to recorded transactions; takes no locks"""

    def __init__(self, transaction_store: TransactionStore):
        self.transaction_store = transaction_store

    def get_transaction(self, transaction_id: str) -> Transaction:
        transaction = self.transaction_store.find_by_transaction_id(transaction_id)
        if not transaction:
            raise AccountServiceError(ErrorCode.TRANSACTION_NOT_FOUND)
        return transaction

    def get_account_transactions(self, account_number: str) -> List[Transaction]:
        """All attempts recorded against an account number, oldest first"""
        return self.transaction_store.find_by_account_number(account_number)


class BalanceTransactionEngine:
    """
    Performs balance use/cancel with per-account locking and audit on failure
    """

    def __init__(
        self,
        account_store: AccountStore,
        transaction_store: TransactionStore,
        lock_coordinator: AccountLockCoordinator,
        clock: Optional[Clock] = None,
        config: Optional[AccountServiceConfig] = None
    ):
        self.account_store = account_store
        self.transaction_store = transaction_store
        self.storage = account_store.storage
        self.lock_coordinator = lock_coordinator
        self.clock = clock or SystemClock()
        self.config = config or get_config()
        self.query = TransactionQuery(transaction_store)
        self.logger = get_logger("account_service.transactions")

    def use_balance(self, user_id: int, account_number: str, amount: int) -> Transaction:
        """
        Spend part of an account's balance

        Args:
            user_id: User who must own the account
            account_number: Account to debit
            amount: Amount to deduct

        Returns:
            SUCCESS Transaction of type USE

        Raises:
            AccountServiceError: ACCOUNT_NOT_FOUND, USER_ACCOUNT_UN_MATCH,
                ACCOUNT_ALREADY_UNREGISTERED, INVALID_REQUEST or
                AMOUNT_EXCEED_BALANCE, after a FAIL record was written
            Exception: Unexpected faults propagate unchanged, after any
                balance update was rolled back and a FAIL record was written
        """
        with self.lock_coordinator.account_lock(account_number):
            if self.config.balance_hold_seconds > 0:
                time.sleep(self.config.balance_hold_seconds)
            try:
                return self._use_balance(user_id, account_number, amount)
            except Exception as e:
                log_action(
                    self.logger, "error", "Failed to use balance",
                    user_id=user_id, action="use_balance",
                    account_number=account_number, error_code=_error_code(e).name,
                    extra={"amount": amount}
                )
                self.save_failed_use_transaction(account_number, amount)
                raise

    def cancel_balance(self, transaction_id: str, account_number: str, amount: int) -> Transaction:
        """
        Reverse a previous successful use in full

        Args:
            transaction_id: External id of the USE transaction to reverse
            account_number: Account the original transaction was made on
            amount: Must equal the original amount exactly

        Returns:
            SUCCESS Transaction of type CANCEL referencing the original

        Raises:
            AccountServiceError: TRANSACTION_NOT_FOUND, ACCOUNT_NOT_FOUND,
                TRANSACTION_ACCOUNT_UN_MATCH, INVALID_REQUEST,
                TRANSACTION_ALREADY_CANCELED, ACCOUNT_ALREADY_UNREGISTERED,
                CANCEL_MUST_FULLY or TOO_OLD_ORDER_TO_CANCEL, after a FAIL
                record was written
            Exception: Unexpected faults propagate unchanged, after any
                balance update was rolled back and a FAIL record was written
        """
        with self.lock_coordinator.account_lock(account_number):
            try:
                return self._cancel_balance(transaction_id, account_number, amount)
            except Exception as e:
                log_action(
                    self.logger, "error", "Failed to cancel balance",
                    action="cancel_balance", account_number=account_number,
                    error_code=_error_code(e).name,
                    extra={"amount": amount, "transaction_id": transaction_id}
                )
                self.save_failed_cancel_transaction(account_number, amount)
                raise

    def query_transaction(self, transaction_id: str) -> Transaction:
        return self.query.get_transaction(transaction_id)

    def save_failed_use_transaction(self, account_number: str, amount: int) -> Transaction:
        """Record a rejected USE attempt"""
        return self._save_failed_transaction(TransactionType.USE, account_number, amount)

    def save_failed_cancel_transaction(self, account_number: str, amount: int) -> Transaction:
        """Record a rejected CANCEL attempt"""
        return self._save_failed_transaction(TransactionType.CANCEL, account_number, amount)

    def _use_balance(self, user_id: int, account_number: str, amount: int) -> Transaction:
        account = self._get_account(account_number)

        if account.user_id != user_id:
            raise AccountServiceError(ErrorCode.USER_ACCOUNT_UN_MATCH)
        if not account.is_in_use:
            raise AccountServiceError(ErrorCode.ACCOUNT_ALREADY_UNREGISTERED)

        account.use_balance(amount, self.config.min_transaction_amount)
        with self.storage.atomic():
            self.account_store.save(account)
            transaction = self._save_success_transaction(TransactionType.USE, account, amount)
        log_action(
            self.logger, "info", "Balance used",
            user_id=user_id, action="use_balance",
            account_number=account_number,
            resource=f"transaction:{transaction.transaction_id}",
            extra={"amount": amount, "balance_snapshot": transaction.balance_snapshot}
        )
        return transaction

    def _cancel_balance(self, transaction_id: str, account_number: str, amount: int) -> Transaction:
        original = self.query.get_transaction(transaction_id)
        account = self._get_account(account_number)

        if original.account_id != account.id:
            raise AccountServiceError(ErrorCode.TRANSACTION_ACCOUNT_UN_MATCH)
        if not original.is_cancelable:
            raise AccountServiceError(
                ErrorCode.INVALID_REQUEST,
                "Only a successful USE transaction can be cancelled"
            )
        if self.transaction_store.find_by_original_transaction_id(original.transaction_id):
            raise AccountServiceError(ErrorCode.TRANSACTION_ALREADY_CANCELED)
        if not account.is_in_use:
            raise AccountServiceError(ErrorCode.ACCOUNT_ALREADY_UNREGISTERED)
        if amount != original.amount:
            raise AccountServiceError(ErrorCode.CANCEL_MUST_FULLY)

        window = timedelta(days=self.config.cancel_window_days)
        if original.transacted_at < self.clock.now() - window:
            raise AccountServiceError(ErrorCode.TOO_OLD_ORDER_TO_CANCEL)

        account.cancel_balance(amount)
        with self.storage.atomic():
            self.account_store.save(account)
            transaction = self._save_success_transaction(
                TransactionType.CANCEL, account, amount,
                original_transaction_id=original.transaction_id
            )
        log_action(
            self.logger, "info", "Balance use cancelled",
            user_id=account.user_id, action="cancel_balance",
            account_number=account_number,
            resource=f"transaction:{transaction.transaction_id}",
            extra={
                "amount": amount,
                "original_transaction_id": original.transaction_id,
                "balance_snapshot": transaction.balance_snapshot
            }
        )
        return transaction

    def _get_account(self, account_number: str) -> Account:
        account = self.account_store.find_by_account_number(account_number)
        if not account:
            raise AccountServiceError(ErrorCode.ACCOUNT_NOT_FOUND)
        return account

    def _save_success_transaction(
        self,
        transaction_type: TransactionType,
        account: Account,
        amount: int,
        original_transaction_id: Optional[str] = None
    ) -> Transaction:
        transaction = Transaction(
            id=None,
            transaction_type=transaction_type,
            result=TransactionResult.SUCCESS,
            account_number=account.account_number,
            amount=amount,
            transaction_id=new_transaction_id(),
            transacted_at=self.clock.now(),
            account_id=account.id,
            balance_snapshot=account.balance,
            original_transaction_id=original_transaction_id
        )
        return self.transaction_store.save(transaction)

    def _save_failed_transaction(
        self,
        transaction_type: TransactionType,
        account_number: str,
        amount: int
    ) -> Transaction:
        # The submitted number may not resolve; the record is still keyed by it
        account = self.account_store.find_by_account_number(account_number)
        transaction = Transaction(
            id=None,
            transaction_type=transaction_type,
            result=TransactionResult.FAIL,
            account_number=account_number,
            amount=amount,
            transaction_id=new_transaction_id(),
            transacted_at=self.clock.now(),
            account_id=account.id if account else None
        )
        self.transaction_store.save(transaction)
        log_action(
            self.logger, "warning", f"Recorded failed {transaction_type.value} attempt",
            action="save_failed_transaction", account_number=account_number,
            resource=f"transaction:{transaction.transaction_id}",
            extra={"amount": amount}
        )
        return transaction
