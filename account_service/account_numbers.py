"""
Account Number Generation

Account numbers are 10 digits: the owner's id modulo 10 followed by the first
nine digits of a random permutation of 0-9. They are opaque identifiers with
no ordering. Collisions with any existing account, active or unregistered,
are retried with a fresh permutation up to a fixed number of attempts.
"""

import random
from typing import Optional

from .stores import AccountStore
from .errors import AccountServiceError, ErrorCode
from .logging_config import get_logger, log_action

DIGITS = "0123456789"
DEFAULT_MAX_ATTEMPTS = 1000


class AccountNumberGenerator:
    """
    Produces collision-free account numbers.

    ``rng`` only needs a ``shuffle(list)`` method, so tests can pass a seeded
    ``random.Random`` or a scripted stand-in to force collisions.
    """

    def __init__(
        self,
        account_store: AccountStore,
        rng: Optional[random.Random] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS
    ):
        self.account_store = account_store
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts
        self.logger = get_logger("account_service.account_numbers")

    def candidate(self, user_id: int) -> str:
        """Draw one candidate number without checking uniqueness"""
        digits = list(DIGITS)
        self.rng.shuffle(digits)
        return f"{user_id % 10}{''.join(digits[:9])}"

    def generate(self, user_id: int) -> str:
        """
        Generate an account number not used by any stored account

        Raises:
            AccountServiceError: ACCOUNT_NUMBER_EXHAUSTED when every attempt collided
        """
        for attempt in range(1, self.max_attempts + 1):
            account_number = self.candidate(user_id)
            if not self.account_store.exists_account_number(account_number):
                return account_number
            log_action(
                self.logger, "debug", "Account number collision",
                user_id=user_id, account_number=account_number,
                action="generate_account_number", extra={"attempt": attempt}
            )

        log_action(
            self.logger, "error", "Account number generation exhausted",
            user_id=user_id, action="generate_account_number",
            error_code=ErrorCode.ACCOUNT_NUMBER_EXHAUSTED.name,
            extra={"attempts": self.max_attempts}
        )
        raise AccountServiceError(
            ErrorCode.ACCOUNT_NUMBER_EXHAUSTED,
            f"No unique account number found after {self.max_attempts} attempts"
        )
