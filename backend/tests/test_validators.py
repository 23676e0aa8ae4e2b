from decimal import Decimal

import pytest

from app.models.payment import PaymentStatus
from app.services.status_map import GATEWAY_STATUS_MAP, map_gateway_status
from app.utils.validators import (
    ORDER_ID_PATTERN,
    clean_phone_number,
    generate_order_id,
    validate_amount,
    validate_currency,
)


# ---------- status mapping ----------

@pytest.mark.parametrize("raw, expected", sorted(GATEWAY_STATUS_MAP.items()))
def test_every_known_status_maps(raw, expected):
    assert map_gateway_status(raw) is expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("APPROVED", PaymentStatus.COMPLETED),
        ("Wait", PaymentStatus.PENDING),
        ("  Canceled ", PaymentStatus.CANCELLED),
        ("DECLINE", PaymentStatus.FAILED),
        ("To_Approve", PaymentStatus.PENDING),
    ],
)
def test_status_mapping_ignores_case_and_whitespace(raw, expected):
    assert map_gateway_status(raw) is expected


@pytest.mark.parametrize("raw", ["foobar", "", None, "refunded"])
def test_unknown_status_fails_closed(raw):
    assert map_gateway_status(raw) is PaymentStatus.FAILED


def test_terminal_statuses():
    assert not PaymentStatus.PENDING.is_terminal
    assert PaymentStatus.COMPLETED.is_terminal
    assert PaymentStatus.CANCELLED.is_terminal
    assert PaymentStatus.FAILED.is_terminal


# ---------- checkout validation ----------

@pytest.mark.parametrize("amount", [1, "0.01", Decimal("1000.00"), 12.5])
def test_valid_amounts(amount):
    assert validate_amount(amount)


@pytest.mark.parametrize("amount", [0, -5, "abc", None, True, "NaN", float("inf")])
def test_invalid_amounts(amount):
    assert not validate_amount(amount)


def test_currency_codes():
    assert validate_currency("TJS")
    assert not validate_currency("tjs")
    assert not validate_currency("TJSX")
    assert not validate_currency("")


def test_clean_phone_number():
    assert clean_phone_number("+992 (90) 123-45-67") == "992901234567"
    assert clean_phone_number(None) == ""


def test_order_id_format():
    order_id = generate_order_id("SAKINA")
    assert ORDER_ID_PATTERN.match(order_id)
    assert order_id.startswith("SAKINA_")


def test_order_ids_are_unique():
    ids = {generate_order_id() for _ in range(500)}
    assert len(ids) == 500
