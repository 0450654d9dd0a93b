"""
Test suite for account number generation

Covers number shape, the user-derived leading digit, collision retries and
the bounded attempt limit.
"""

import random
import pytest
from datetime import datetime, timezone

from account_service.storage import InMemoryStorage
from account_service.stores import AccountStore
from account_service.models import Account, AccountStatus
from account_service.account_numbers import AccountNumberGenerator
from account_service.errors import AccountServiceError, ErrorCode


class ScriptedRandom:
    """Stand-in RNG that replays fixed permutations"""

    def __init__(self, permutations):
        self.permutations = list(permutations)
        self.calls = 0

    def shuffle(self, digits):
        permutation = self.permutations[min(self.calls, len(self.permutations) - 1)]
        self.calls += 1
        digits[:] = list(permutation)


def store_account(account_store, account_number, user_id=1):
    account = Account(
        id=None,
        user_id=user_id,
        account_number=account_number,
        status=AccountStatus.UNREGISTERED,
        balance=0,
        registered_at=datetime.now(timezone.utc)
    )
    return account_store.save(account)


class TestAccountNumberGenerator:
    """Test AccountNumberGenerator functionality"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.account_store = AccountStore(self.storage)

    @pytest.mark.parametrize("user_id", [0, 1, 7, 10, 13, 12345])
    def test_length_and_leading_digit(self, user_id):
        """Numbers are 10 digits led by user_id mod 10"""
        generator = AccountNumberGenerator(self.account_store, rng=random.Random(user_id))

        for _ in range(20):
            number = generator.generate(user_id)
            assert len(number) == 10
            assert number.isdigit()
            assert number[0] == str(user_id % 10)

    def test_suffix_has_distinct_digits(self):
        """The nine trailing digits come from a permutation, so none repeat"""
        generator = AccountNumberGenerator(self.account_store, rng=random.Random(42))

        number = generator.generate(3)

        assert len(set(number[1:])) == 9

    def test_seeded_rng_is_deterministic(self):
        """The same seed produces the same sequence of numbers"""
        first = AccountNumberGenerator(self.account_store, rng=random.Random(7))
        second = AccountNumberGenerator(self.account_store, rng=random.Random(7))

        assert [first.generate(1) for _ in range(5)] == [second.generate(1) for _ in range(5)]

    def test_collision_is_retried(self):
        """A number already in use, even by an unregistered account, is skipped"""
        store_account(self.account_store, "1012345678")
        rng = ScriptedRandom(["0123456789", "9876543210"])
        generator = AccountNumberGenerator(self.account_store, rng=rng)

        number = generator.generate(1)

        assert number == "1987654321"
        assert rng.calls == 2

    def test_exhaustion_raises(self):
        """Generation fails after the attempt bound instead of looping forever"""
        store_account(self.account_store, "2012345678")
        rng = ScriptedRandom(["0123456789"])
        generator = AccountNumberGenerator(self.account_store, rng=rng, max_attempts=5)

        with pytest.raises(AccountServiceError) as exc_info:
            generator.generate(2)

        assert exc_info.value.code == ErrorCode.ACCOUNT_NUMBER_EXHAUSTED
        assert rng.calls == 5

    def test_default_attempt_bound(self):
        """The default bound is 1000 attempts"""
        store_account(self.account_store, "4012345678")
        rng = ScriptedRandom(["0123456789"])
        generator = AccountNumberGenerator(self.account_store, rng=rng)

        with pytest.raises(AccountServiceError):
            generator.generate(4)

        assert rng.calls == 1000
