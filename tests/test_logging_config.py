"""Tests for structured logging."""

import json
import logging

from backoffice.logging_config import MASK, CustomJsonFormatter, SecretMaskingFilter, get_logger


def make_record(msg, args=None, **extra):
    record = logging.LogRecord("backoffice.upstream.requester", logging.INFO, __file__, 10, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSecretMasking:
    """Test masking of configured secrets."""

    def test_token_masked_in_formatted_message(self):
        mask = SecretMaskingFilter(["secret-token", "", None])
        record = make_record("POST %s Form: %s", ("/order/get", {"token": "secret-token"}))

        assert mask.filter(record) is True
        assert "secret-token" not in record.getMessage()
        assert MASK in record.getMessage()

    def test_untouched_without_secret(self):
        mask = SecretMaskingFilter(["secret-token"])
        record = make_record("Loaded %d orders", (3,))

        mask.filter(record)

        assert record.getMessage() == "Loaded 3 orders"
        assert record.args == (3,)


class TestJsonFormatter:
    """Test JSON record layout."""

    def test_upstream_fields_grouped(self):
        formatter = CustomJsonFormatter("%(message)s")
        record = make_record(
            "Endpoint succeeded: /product/getProducts",
            operation="get_products",
            transport="form_post",
            outcome="success",
        )

        out = json.loads(formatter.format(record))

        assert out["upstream"] == {
            "operation": "get_products",
            "transport": "form_post",
            "outcome": "success",
        }
        assert "operation" not in out
        assert out["service"] == "tsoft-backoffice"
        assert out["level"] == "INFO"

    def test_no_upstream_group_without_context(self):
        formatter = CustomJsonFormatter("%(message)s")
        out = json.loads(formatter.format(make_record("Starting")))
        assert "upstream" not in out


def test_get_logger_merges_context():
    log = get_logger("backoffice.test", operation="get_orders")

    msg, kwargs = log.process("attempt", {"extra": {"outcome": "success"}})

    assert kwargs["extra"] == {"operation": "get_orders", "outcome": "success"}
