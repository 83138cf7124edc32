# app/validation.py
"""
Business-rule validation for incoming records.

Pydantic schemas only guarantee types and presence. The rules below are
checked explicitly by the services; each function returns the list of
violations (empty when the record is acceptable) so callers can report
every problem at once.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .core.exceptions import FieldError
from .models import DiscountType

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def _check_slug(slug: Optional[str], errors: list[FieldError]):
    if not slug or not SLUG_RE.match(slug.lower()):
        errors.append(FieldError("slug", "Slug may only contain letters, digits and single hyphens"))


def validate_discount(
    *,
    name: Optional[str],
    discount_type: DiscountType,
    value: Decimal,
    start_date: datetime,
    end_date: datetime,
    minimum_order_value: Optional[Decimal] = None,
    minimum_quantity: Optional[int] = None,
    max_usage_count: Optional[int] = None,
) -> list[FieldError]:
    errors = []
    if not name or len(name.strip()) < 3:
        errors.append(FieldError("name", "Name must be at least 3 characters long"))
    if value < 0:
        errors.append(FieldError("value", "Value must not be negative"))
    elif discount_type == DiscountType.PERCENTAGE and value > 100:
        errors.append(FieldError("value", "Percentage discounts must be between 0 and 100"))
    if start_date >= end_date:
        errors.append(FieldError("end_date", "End date must be after start date"))
    if minimum_order_value is not None and minimum_order_value < 0:
        errors.append(FieldError("minimum_order_value", "Minimum order value must not be negative"))
    if minimum_quantity is not None and minimum_quantity < 1:
        errors.append(FieldError("minimum_quantity", "Minimum quantity must be at least 1"))
    if max_usage_count is not None and max_usage_count < 1:
        errors.append(FieldError("max_usage_count", "Maximum usage count must be at least 1"))
    return errors


def validate_product(
    *, name: Optional[str], slug: Optional[str], sku: Optional[str], base_price: Decimal
) -> list[FieldError]:
    errors = []
    if not name or len(name.strip()) < 3:
        errors.append(FieldError("name", "Name must be at least 3 characters long"))
    _check_slug(slug, errors)
    if not sku or not sku.strip():
        errors.append(FieldError("sku", "SKU is required"))
    if base_price < 0:
        errors.append(FieldError("base_price", "Base price must not be negative"))
    return errors


def validate_product_item(*, sku: Optional[str], price: Decimal, quantity_in_stock: int) -> list[FieldError]:
    errors = []
    if not sku or not sku.strip():
        errors.append(FieldError("sku", "SKU is required"))
    if price < 0:
        errors.append(FieldError("price", "Price must not be negative"))
    if quantity_in_stock < 0:
        errors.append(FieldError("quantity_in_stock", "Stock must not be negative"))
    return errors


def validate_category(*, name: Optional[str], slug: Optional[str]) -> list[FieldError]:
    errors = []
    if not name or not name.strip():
        errors.append(FieldError("name", "Name is required"))
    _check_slug(slug, errors)
    return errors


def validate_password(password: str, confirm_password: Optional[str] = None) -> list[FieldError]:
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(FieldError("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"))
    elif len(password.encode("utf-8")) > 72:
        # bcrypt only hashes the first 72 bytes
        errors.append(FieldError("password", "Password must be at most 72 bytes long"))
    if confirm_password is not None and password != confirm_password:
        errors.append(FieldError("confirm_password", "Passwords do not match"))
    return errors


def validate_registration(*, email: str, password: str, first_name: str, last_name: str) -> list[FieldError]:
    errors = []
    if not EMAIL_RE.match(email or ""):
        errors.append(FieldError("email", "Invalid email address"))
    errors.extend(validate_password(password))
    if not first_name or not first_name.strip():
        errors.append(FieldError("first_name", "First name is required"))
    if not last_name or not last_name.strip():
        errors.append(FieldError("last_name", "Last name is required"))
    return errors


def reject_nulls(update_data: dict, fields: tuple[str, ...]) -> list[FieldError]:
    """Partial updates may omit required fields but not set them to null."""
    return [
        FieldError(name, "Field may not be null")
        for name in fields
        if name in update_data and update_data[name] is None
    ]
