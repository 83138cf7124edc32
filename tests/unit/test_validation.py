# tests/unit/test_validation.py

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app.models import DiscountType
from app.validation import (
    reject_nulls,
    validate_category,
    validate_discount,
    validate_password,
    validate_product,
    validate_registration,
)

START = datetime(2024, 1, 1)


def discount_errors(**overrides):
    fields = {
        "name": "Summer Sale",
        "discount_type": DiscountType.PERCENTAGE,
        "value": Decimal("20"),
        "start_date": START,
        "end_date": START + timedelta(days=30),
    }
    fields.update(overrides)
    return [e.field for e in validate_discount(**fields)]


def test_valid_discount_has_no_errors():
    assert discount_errors() == []


def test_end_date_must_follow_start_date():
    assert discount_errors(end_date=START) == ["end_date"]
    assert discount_errors(end_date=START - timedelta(days=1)) == ["end_date"]


@pytest.mark.parametrize(
    "discount_type, value, ok",
    [
        (DiscountType.PERCENTAGE, Decimal("100"), True),
        (DiscountType.PERCENTAGE, Decimal("100.01"), False),
        (DiscountType.FIXED_AMOUNT, Decimal("250"), True),
        (DiscountType.FIXED_AMOUNT, Decimal("-1"), False),
    ],
)
def test_discount_value_limits(discount_type, value, ok):
    errors = discount_errors(discount_type=discount_type, value=value)
    assert (errors == []) is ok


def test_discount_reports_every_problem_at_once():
    errors = discount_errors(
        name="ab", value=Decimal("-5"), end_date=START, minimum_quantity=0, max_usage_count=0
    )
    assert errors == ["name", "value", "end_date", "minimum_quantity", "max_usage_count"]


def test_product_rules():
    assert validate_product(name="Gold Ring", slug="gold-ring", sku="GR-1", base_price=Decimal("10")) == []

    errors = validate_product(name="Go", slug="gold ring!", sku=" ", base_price=Decimal("-1"))
    assert [e.field for e in errors] == ["name", "slug", "sku", "base_price"]


@pytest.mark.parametrize("slug", ["rings", "gold-rings-2024", "Gold-Rings"])
def test_category_slug_accepted(slug):
    assert validate_category(name="Rings", slug=slug) == []


@pytest.mark.parametrize("slug", ["", "gold--rings", "-rings", "rings-", "gold rings"])
def test_category_slug_rejected(slug):
    assert [e.field for e in validate_category(name="Rings", slug=slug)] == ["slug"]


def test_password_rules():
    assert validate_password("long-enough") == []
    assert [e.field for e in validate_password("short")] == ["password"]
    assert [e.field for e in validate_password("x" * 73)] == ["password"]
    assert [e.field for e in validate_password("long-enough", "different")] == ["confirm_password"]


def test_registration_rules():
    assert validate_registration(email="ana@example.com", password="s3cret-pass", first_name="Ana", last_name="Lee") == []

    errors = validate_registration(email="not-an-email", password="123", first_name=" ", last_name="")
    assert [e.field for e in errors] == ["email", "password", "first_name", "last_name"]


def test_reject_nulls_only_flags_explicit_nulls():
    errors = reject_nulls({"name": None, "description": None}, ("name", "value"))
    assert [e.field for e in errors] == ["name"]
