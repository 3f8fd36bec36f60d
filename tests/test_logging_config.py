"""
Tests for logging configuration.
"""
import logging


class TestLoggingConfiguration:
    """Test logging setup and configuration."""

    def test_setup_logging_default_level(self, monkeypatch):
        """Test that setup_logging defaults to INFO level."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        from delivery_api.logging_config import setup_logging
        setup_logging()

        logger = logging.getLogger("delivery_api")
        assert logger.level == logging.INFO

    def test_setup_logging_respects_env_var(self, monkeypatch):
        """Test that LOG_LEVEL env var is respected."""
        monkeypatch.setenv("LOG_LEVEL", "warning")

        from delivery_api.logging_config import setup_logging
        setup_logging()

        logger = logging.getLogger("delivery_api")
        assert logger.level == logging.WARNING

    def test_setup_logging_explicit_level(self):
        """Test that explicit level parameter works."""
        from delivery_api.logging_config import setup_logging
        setup_logging(level="ERROR")

        logger = logging.getLogger("delivery_api")
        assert logger.level == logging.ERROR

    def test_setup_logging_invalid_level_defaults_to_info(self):
        """Test that invalid level falls back to INFO."""
        from delivery_api.logging_config import setup_logging
        setup_logging(level="INVALID_LEVEL")

        logger = logging.getLogger("delivery_api")
        assert logger.level == logging.INFO

    def test_third_party_loggers_quieted_outside_debug(self):
        from delivery_api.logging_config import setup_logging
        setup_logging(level="INFO")

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
        assert logging.getLogger("slowapi").level == logging.WARNING

    def test_debug_lets_third_party_loggers_through(self):
        from delivery_api.logging_config import setup_logging
        setup_logging(level="DEBUG")

        assert logging.getLogger("sqlalchemy.engine").level == logging.DEBUG
        assert logging.getLogger("uvicorn.access").level == logging.DEBUG
        setup_logging(level="INFO")


class TestNoSensitiveDataInLogs:
    """Test that secrets are not logged at INFO level or higher."""

    def test_admin_key_not_logged(self, client, admin_key, caplog):
        """The admin key must never appear in the logs, even at DEBUG."""
        with caplog.at_level(logging.DEBUG, logger="delivery_api"):
            client.post(
                "/api/admin/product-availability/bulk",
                json={"productAvailability": {"p1": False}},
                headers=admin_key,
            )
            client.post(
                "/api/admin/product-availability/bulk",
                json={"productAvailability": {"p1": True}},
                headers={"x-admin-key": "wrong-key-value"},
            )

        for record in caplog.records:
            assert admin_key["x-admin-key"] not in record.getMessage()
            assert "wrong-key-value" not in record.getMessage()

    def test_audit_is_logged_at_info(self, client, admin_key, caplog):
        with caplog.at_level(logging.INFO, logger="delivery_api"):
            client.post(
                "/api/admin/product-availability/bulk",
                json={"productAvailability": {"p1": False}, "adminName": "Maria"},
                headers=admin_key,
            )

        messages = [r.getMessage() for r in caplog.records if r.levelno >= logging.INFO]
        assert any("update_availability" in m and "Maria" in m for m in messages)
