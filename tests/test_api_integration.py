"""
Integration tests for the Account Service API
Tests end-to-end workflows using FastAPI TestClient
"""

import random
import pytest
from fastapi.testclient import TestClient

from account_service.api import create_app
from account_service.config import AccountServiceConfig
from account_service.storage import InMemoryStorage
from account_service.system import AccountSystem


@pytest.fixture
def system():
    """Account system backed by in-memory storage"""
    return AccountSystem(
        storage=InMemoryStorage(),
        config=AccountServiceConfig(storage_backend="memory"),
        rng=random.Random(2024)
    )


@pytest.fixture
def client(system):
    """Create a test client for the API with an isolated account system"""
    return TestClient(create_app(system))


@pytest.fixture
def user(system):
    return system.register_user("Pobi")


def create_account(client, user_id, initial_balance=1000):
    r = client.post("/account", json={"user_id": user_id, "initial_balance": initial_balance})
    assert r.status_code == 200
    return r.json()


def use_balance(client, user_id, account_number, amount):
    return client.post("/transaction/use", json={
        "user_id": user_id,
        "account_number": account_number,
        "amount": amount
    })


def assert_error(response, status_code, error_code):
    assert response.status_code == status_code
    data = response.json()
    assert data["error_code"] == error_code
    assert data["error_message"]


class TestHealthEndpoints:
    """Test basic health endpoint"""

    def test_health(self, client):
        """Test health endpoint"""
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "healthy"
        assert "version" in data

    def test_root(self, client):
        """Test root endpoint"""
        r = client.get("/")
        assert r.status_code == 200
        data = r.json()
        assert data["name"] == "Account Service API"
        assert "endpoints" in data


class TestAccountFlow:
    """End-to-end account management tests"""

    def test_create_account(self, client, user):
        """Test opening an account"""
        data = create_account(client, user.id)

        assert data["user_id"] == user.id
        assert len(data["account_number"]) == 10
        assert data["account_number"][0] == str(user.id % 10)
        assert "registered_at" in data

    def test_create_account_unknown_user(self, client):
        r = client.post("/account", json={"user_id": 999, "initial_balance": 100})
        assert_error(r, 404, "USER_NOT_FOUND")

    def test_create_account_limit(self, client, user):
        """The 11th active account is a conflict"""
        for _ in range(10):
            create_account(client, user.id, 0)

        r = client.post("/account", json={"user_id": user.id, "initial_balance": 0})
        assert_error(r, 409, "MAX_ACCOUNT_PER_USER_10")

    def test_list_accounts(self, client, user):
        """Test listing a user's accounts"""
        first = create_account(client, user.id, 100)
        second = create_account(client, user.id, 200)

        r = client.get("/account", params={"user_id": user.id})

        assert r.status_code == 200
        assert r.json() == [
            {"account_number": first["account_number"], "balance": 100},
            {"account_number": second["account_number"], "balance": 200},
        ]

    def test_get_account(self, client, system, user):
        """Test account detail lookup by id"""
        created = create_account(client, user.id, 500)
        account = system.account_manager.get_account_by_number(created["account_number"])

        r = client.get(f"/account/{account.id}")

        assert r.status_code == 200
        data = r.json()
        assert data["account_number"] == created["account_number"]
        assert data["status"] == "IN_USE"
        assert data["balance"] == 500
        assert data["unregistered_at"] is None

    def test_get_account_errors(self, client):
        assert_error(client.get("/account/424242"), 404, "ACCOUNT_NOT_FOUND")
        assert_error(client.get("/account/-1"), 400, "INVALID_REQUEST")

    def test_delete_account(self, client, user):
        """Test unregistering an empty account"""
        created = create_account(client, user.id, 0)

        r = client.request("DELETE", "/account", json={
            "user_id": user.id,
            "account_number": created["account_number"]
        })

        assert r.status_code == 200
        data = r.json()
        assert data["account_number"] == created["account_number"]
        assert "unregistered_at" in data

        again = client.request("DELETE", "/account", json={
            "user_id": user.id,
            "account_number": created["account_number"]
        })
        assert_error(again, 409, "ACCOUNT_ALREADY_UNREGISTERED")

    def test_delete_account_with_balance(self, client, user):
        created = create_account(client, user.id, 10)

        r = client.request("DELETE", "/account", json={
            "user_id": user.id,
            "account_number": created["account_number"]
        })

        assert_error(r, 409, "BALANCE_NOT_EMPTY")


class TestTransactionFlow:
    """End-to-end balance use and cancel tests"""

    def test_use_and_cancel(self, client, system, user):
        """Use 300 of 1000, then cancel it"""
        account_number = create_account(client, user.id, 1000)["account_number"]

        r = use_balance(client, user.id, account_number, 300)
        assert r.status_code == 200
        used = r.json()
        assert used["transaction_type"] == "USE"
        assert used["transaction_result"] == "SUCCESS"
        assert used["amount"] == 300
        assert used["balance_snapshot"] == 700

        r = client.post("/transaction/cancel", json={
            "transaction_id": used["transaction_id"],
            "account_number": account_number,
            "amount": 300
        })
        assert r.status_code == 200
        cancelled = r.json()
        assert cancelled["transaction_type"] == "CANCEL"
        assert cancelled["balance_snapshot"] == 1000

        balances = client.get("/account", params={"user_id": user.id}).json()
        assert balances[0]["balance"] == 1000

    def test_query_transaction(self, client, user):
        account_number = create_account(client, user.id)["account_number"]
        used = use_balance(client, user.id, account_number, 100).json()

        r = client.get(f"/transaction/{used['transaction_id']}")

        assert r.status_code == 200
        assert r.json() == used

    def test_query_transaction_not_found(self, client):
        assert_error(client.get("/transaction/unknown"), 404, "TRANSACTION_NOT_FOUND")

    def test_failed_use_is_queryable(self, client, system, user):
        """A rejected use leaves a FAIL record without a snapshot"""
        account_number = create_account(client, user.id, 100)["account_number"]

        r = use_balance(client, user.id, account_number, 500)
        assert_error(r, 409, "AMOUNT_EXCEED_BALANCE")

        records = system.transaction_query.get_account_transactions(account_number)
        assert len(records) == 1

        r = client.get(f"/transaction/{records[0].transaction_id}")
        assert r.status_code == 200
        data = r.json()
        assert data["transaction_result"] == "FAIL"
        assert data["balance_snapshot"] is None

    def test_use_below_minimum(self, client, system, user):
        """Amounts under the minimum unit are invalid and still audited"""
        account_number = create_account(client, user.id)["account_number"]

        assert_error(use_balance(client, user.id, account_number, 5), 400, "INVALID_REQUEST")
        assert len(system.transaction_query.get_account_transactions(account_number)) == 1

    def test_use_owner_mismatch(self, client, system, user):
        other = system.register_user("Crong")
        account_number = create_account(client, user.id)["account_number"]

        r = use_balance(client, other.id, account_number, 100)

        assert_error(r, 409, "USER_ACCOUNT_UN_MATCH")

    def test_cancel_partial(self, client, user):
        account_number = create_account(client, user.id)["account_number"]
        used = use_balance(client, user.id, account_number, 300).json()

        r = client.post("/transaction/cancel", json={
            "transaction_id": used["transaction_id"],
            "account_number": account_number,
            "amount": 100
        })

        assert_error(r, 400, "CANCEL_MUST_FULLY")


class TestRequestValidation:
    """Malformed requests map to INVALID_REQUEST"""

    def test_missing_field(self, client):
        r = client.post("/account", json={"user_id": 1})
        assert_error(r, 400, "INVALID_REQUEST")

    def test_bad_account_number_length(self, client, user):
        r = use_balance(client, user.id, "123", 100)
        assert_error(r, 400, "INVALID_REQUEST")

    def test_amount_over_limit(self, client, user):
        account_number = create_account(client, user.id)["account_number"]
        r = use_balance(client, user.id, account_number, 1_000_000_001)
        assert_error(r, 400, "INVALID_REQUEST")

    def test_non_positive_user_id(self, client):
        r = client.post("/account", json={"user_id": 0, "initial_balance": 100})
        assert_error(r, 400, "INVALID_REQUEST")


class TestUnexpectedErrors:
    """Faults outside the business rules"""

    def test_internal_error_response(self, system, user):
        """Unexpected exceptions become INTERNAL_SERVER_ERROR"""
        def broken(user_id):
            raise RuntimeError("storage unavailable")

        system.account_manager.get_accounts_by_user = broken
        client = TestClient(create_app(system), raise_server_exceptions=False)

        r = client.get("/account", params={"user_id": user.id})

        assert_error(r, 500, "INTERNAL_SERVER_ERROR")
