"""
Tests for the JSON log formatter and correlation id context.
"""
import json
import logging
import sys

import pytest

from cleaning_crm.lib.logging import (
    JSONFormatter,
    get_correlation_id,
    get_logger,
    get_principal,
    set_correlation_id,
    set_principal,
)


def make_record(msg="Customer created", exc_info=None, **extra):
    record = logging.LogRecord(
        "cleaning_crm.test", logging.INFO, __file__, 10, msg, (), exc_info
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def clear_request_context():
    yield
    set_correlation_id(None)
    set_principal(None)


@pytest.mark.unit
def test_format_basic_fields():
    data = json.loads(JSONFormatter().format(make_record()))

    assert data["level"] == "INFO"
    assert data["logger"] == "cleaning_crm.test"
    assert data["message"] == "Customer created"
    assert "timestamp" in data
    assert "correlation_id" not in data


@pytest.mark.unit
def test_format_includes_correlation_id():
    set_correlation_id("req-42")

    data = json.loads(JSONFormatter().format(make_record()))

    assert get_correlation_id() == "req-42"
    assert data["correlation_id"] == "req-42"


@pytest.mark.unit
def test_format_includes_extra_attributes():
    """Values passed through extra= show up as top-level keys."""
    data = json.loads(JSONFormatter().format(make_record(component="CUSTOMERS_GET", status_code=500)))

    assert data["component"] == "CUSTOMERS_GET"
    assert data["status_code"] == 500
    assert "lineno" not in data


@pytest.mark.unit
def test_format_includes_context_fields():
    record = make_record(extra_fields={"customer_id": "abc", "principal": "user_1"})

    data = json.loads(JSONFormatter().format(record))

    assert data["customer_id"] == "abc"
    assert data["principal"] == "user_1"
    assert "extra_fields" not in data


@pytest.mark.unit
def test_format_exception():
    try:
        raise RuntimeError("store unavailable")
    except RuntimeError:
        record = make_record(exc_info=sys.exc_info())

    data = json.loads(JSONFormatter().format(record))

    assert "RuntimeError: store unavailable" in data["exception"]


@pytest.mark.unit
def test_format_includes_service_name():
    data = json.loads(JSONFormatter(service="Cleaning CRM API").format(make_record()))

    assert data["service"] == "Cleaning CRM API"


@pytest.mark.unit
def test_format_includes_principal():
    set_principal("user_2a9Xc")

    data = json.loads(JSONFormatter().format(make_record()))

    assert get_principal() == "user_2a9Xc"
    assert data["principal"] == "user_2a9Xc"


@pytest.mark.unit
def test_records_are_stamped_with_request_context(caplog):
    """Context is captured when the record is created, not when it is formatted."""
    logger = get_logger("cleaning_crm.test")
    set_correlation_id("req-7")
    set_principal("user_7")

    with caplog.at_level("INFO", logger="cleaning_crm.test"):
        logger.info("Customer updated")

    set_correlation_id(None)
    set_principal(None)

    record = caplog.records[-1]
    assert record.correlation_id == "req-7"
    assert record.principal == "user_7"

    data = json.loads(JSONFormatter().format(record))
    assert data["correlation_id"] == "req-7"
    assert data["principal"] == "user_7"
