"""Config loading, startup logging and the JSON log context filter."""

import logging

from authflow.common.config import AppSettings
from authflow.common.logging import ContextFilter, payment_id_ctx
from authflow.common.startup import _safe_value, log_startup_config


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("PRE_AUTH_APPROVAL_RATE", "0.5")
    monkeypatch.setenv("MAX_EVENT_CHAIN", "4")
    config = AppSettings()
    assert config.pre_auth_approval_rate == 0.5
    assert config.max_event_chain == 4
    assert config.auth_approval_rate == 0.8


def test_startup_config_redacts_secret_like_keys():
    config = AppSettings(service_name="payments-test")
    logged = log_startup_config(config, ["database_url", "api_token", "max_event_chain"])
    assert logged["service"] == "payments-test"
    assert logged["api_token"] == "<unset>"
    assert logged["max_event_chain"] == "16"
    assert _safe_value("db_password", "hunter2") == "<redacted>"


def test_context_filter_adds_payment_id():
    record = logging.LogRecord("authflow", logging.INFO, __file__, 1, "msg", None, None)
    token = payment_id_ctx.set("pay-9")
    try:
        assert ContextFilter().filter(record) is True
    finally:
        payment_id_ctx.reset(token)
    assert record.payment_id == "pay-9"
