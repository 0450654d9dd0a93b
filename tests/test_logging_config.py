"""
Tests for structured logging, configuration and error codes
"""

import json
import logging
import pytest

from account_service.logging_config import JSONFormatter, setup_logging, log_action
from account_service.config import AccountServiceConfig, get_config, reload_config
from account_service.errors import AccountServiceError, ErrorCode, ErrorCategory
from account_service.system import create_storage
from account_service.storage import InMemoryStorage


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.lines = []

    def emit(self, record):
        self.lines.append(self.format(record))


class TestStructuredLogging:
    """Test JSON log output"""

    def setup_method(self):
        self.logger = logging.getLogger("account_service.test")
        self.handler = ListHandler()
        self.handler.setFormatter(JSONFormatter())
        self.logger.addHandler(self.handler)
        self.logger.setLevel(logging.DEBUG)

    def teardown_method(self):
        self.logger.removeHandler(self.handler)

    def test_log_action_fields(self):
        """Structured fields appear as top-level JSON keys"""
        log_action(
            self.logger, "warning", "Balance used",
            user_id=7, action="use_balance", account_number="7123456789",
            extra={"amount": 300}
        )

        entry = json.loads(self.handler.lines[0])
        assert entry["level"] == "WARNING"
        assert entry["message"] == "Balance used"
        assert entry["user_id"] == 7
        assert entry["action"] == "use_balance"
        assert entry["account_number"] == "7123456789"
        assert entry["extra"] == {"amount": 300}

    def test_unset_fields_are_omitted(self):
        log_action(self.logger, "info", "plain")

        entry = json.loads(self.handler.lines[0])
        assert "user_id" not in entry
        assert "error_code" not in entry

    def test_setup_logging_replaces_handlers(self):
        logger = setup_logging("DEBUG", logger_name="account_service.setup_test")
        setup_logging("DEBUG", logger_name="account_service.setup_test", log_format="text")

        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.DEBUG


class TestConfiguration:
    """Test environment-driven configuration"""

    def test_defaults(self):
        config = AccountServiceConfig()
        assert config.max_accounts_per_user == 10
        assert config.min_transaction_amount == 10
        assert config.cancel_window_days == 365
        assert config.account_number_max_attempts == 1000
        assert config.balance_hold_seconds == 0.0

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("ACCOUNT_SERVICE_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("ACCOUNT_SERVICE_BALANCE_HOLD_SECONDS", "3")

        config = AccountServiceConfig()

        assert config.storage_backend == "memory"
        assert config.balance_hold_seconds == 3.0

    def test_reload_config(self, monkeypatch):
        """Reloading picks up environment changes in the global instance"""
        monkeypatch.setenv("ACCOUNT_SERVICE_MAX_ACCOUNTS_PER_USER", "3")
        try:
            reloaded = reload_config()
            assert reloaded.max_accounts_per_user == 3
            assert get_config() is reloaded
        finally:
            monkeypatch.delenv("ACCOUNT_SERVICE_MAX_ACCOUNTS_PER_USER")
            reload_config()

    def test_create_storage(self):
        assert isinstance(create_storage(AccountServiceConfig(storage_backend="memory")), InMemoryStorage)
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_storage(AccountServiceConfig(storage_backend="redis"))


class TestAccountServiceError:
    """Test error codes"""

    def test_default_message(self):
        error = AccountServiceError(ErrorCode.ACCOUNT_NOT_FOUND)
        assert error.message == "Account not found"
        assert error.category == ErrorCategory.NOT_FOUND
        assert error.to_dict() == {
            "error_code": "ACCOUNT_NOT_FOUND",
            "error_message": "Account not found"
        }

    def test_custom_message(self):
        error = AccountServiceError(ErrorCode.INVALID_REQUEST, "Amount must be at least 10")
        assert str(error) == "INVALID_REQUEST: Amount must be at least 10"

    def test_every_code_has_category(self):
        for code in ErrorCode:
            assert isinstance(code.category, ErrorCategory)
            assert code.description

    def test_cancel_amount_mismatch_is_validation(self):
        """A cancel amount that differs from the original is a validation failure"""
        error = AccountServiceError(ErrorCode.CANCEL_MUST_FULLY)
        assert error.category == ErrorCategory.VALIDATION
        assert "amount-mismatch" in ErrorCode.__doc__
