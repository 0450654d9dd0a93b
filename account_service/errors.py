"""
Error Module

A single tagged error type for every business rule failure. Each failure
carries a stable ``ErrorCode`` (machine-readable, safe to return across the
API boundary) and a human-readable message. Callers catch
``AccountServiceError`` and dispatch on ``error.code`` or ``error.category``
instead of parsing messages.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Broad class of a failure, used by the boundary to pick a response"""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    EXHAUSTION = "exhaustion"
    INTERNAL = "internal"


class ErrorCode(Enum):
    """
    Stable error codes representable at the API boundary

    CANCEL_MUST_FULLY is the amount-mismatch failure of a cancel: the
    requested amount differs from the original use.
    """
    INVALID_REQUEST = ("Invalid request", ErrorCategory.VALIDATION)
    CANCEL_MUST_FULLY = ("Partial cancellation is not allowed", ErrorCategory.VALIDATION)
    USER_NOT_FOUND = ("User not found", ErrorCategory.NOT_FOUND)
    ACCOUNT_NOT_FOUND = ("Account not found", ErrorCategory.NOT_FOUND)
    TRANSACTION_NOT_FOUND = ("Transaction not found", ErrorCategory.NOT_FOUND)
    MAX_ACCOUNT_PER_USER_10 = ("A user may own at most 10 accounts", ErrorCategory.CONFLICT)
    USER_ACCOUNT_UN_MATCH = ("Account does not belong to the user", ErrorCategory.CONFLICT)
    ACCOUNT_ALREADY_UNREGISTERED = ("Account is already unregistered", ErrorCategory.CONFLICT)
    BALANCE_NOT_EMPTY = ("Account still has a balance", ErrorCategory.CONFLICT)
    AMOUNT_EXCEED_BALANCE = ("Amount exceeds the account balance", ErrorCategory.CONFLICT)
    TRANSACTION_ACCOUNT_UN_MATCH = ("Transaction does not belong to the account", ErrorCategory.CONFLICT)
    TRANSACTION_ALREADY_CANCELED = ("Transaction has already been cancelled", ErrorCategory.CONFLICT)
    TOO_OLD_ORDER_TO_CANCEL = ("Transactions older than one year cannot be cancelled", ErrorCategory.CONFLICT)
    ACCOUNT_NUMBER_EXHAUSTED = ("Could not generate a unique account number", ErrorCategory.EXHAUSTION)
    INTERNAL_SERVER_ERROR = ("Internal server error", ErrorCategory.INTERNAL)

    def __init__(self, description: str, category: ErrorCategory):
        self.description = description
        self.category = category


class AccountServiceError(Exception):
    """
    Business rule failure with a stable error code.

    The message defaults to the code's description.
    """

    def __init__(self, code: ErrorCode, message: Optional[str] = None):
        self.code = code
        self.message = message or code.description
        super().__init__(f"{code.name}: {self.message}")

    @property
    def category(self) -> ErrorCategory:
        return self.code.category

    def to_dict(self) -> dict:
        """Serialize for an error response body"""
        return {
            "error_code": self.code.name,
            "error_message": self.message
        }
