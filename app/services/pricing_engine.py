# app/services/pricing_engine.py
"""
Discount-to-price resolution.

A product's final price is its base price reduced by the single discount
that saves the most; discounts never stack. Pricing is a read-time
enrichment: a missing, inactive, expired or used-up discount is simply
left out and the product keeps its base price. Nothing here raises.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..core.clock import as_naive_utc, utcnow
from ..crud import crud_discount, crud_product_discount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PricingResult:
    final_price: Decimal
    applied_discounts: List[dict] = field(default_factory=list)

    @property
    def has_discount(self) -> bool:
        return bool(self.applied_discounts)


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def is_discount_valid(discount: Optional[models.Discount], now: Optional[datetime] = None) -> bool:
    """
    Whether the discount may be applied at `now`:
    active flag set, `start_date <= now <= end_date`, and usage cap not reached.
    """
    if discount is None or not discount.is_active:
        return False

    now = as_naive_utc(now) if now is not None else utcnow()
    if now < as_naive_utc(discount.start_date) or now > as_naive_utc(discount.end_date):
        return False

    if discount.max_usage_count is not None and (discount.usage_count or 0) >= discount.max_usage_count:
        return False
    return True


def discounted_price(base_price: Decimal, discount: models.Discount) -> Decimal:
    """Candidate price for one discount, rounded to cents and never below zero."""
    base_price = Decimal(str(base_price))
    value = Decimal(str(discount.value))

    if discount.discount_type == models.DiscountType.PERCENTAGE:
        candidate = base_price * (1 - value / 100)
    elif discount.discount_type == models.DiscountType.FIXED_AMOUNT:
        candidate = base_price - value
    else:
        candidate = base_price
    return max(ZERO, _money(candidate))


def resolve_price(
    base_price: Decimal,
    discounts: Iterable[Optional[models.Discount]],
    now: Optional[datetime] = None,
) -> PricingResult:
    """
    Picks the valid discount with the largest saving.

    Ties go to the discount with the lowest id; a discount that saves
    nothing is never reported as applied.
    """
    base_price = _money(base_price)
    now = now or utcnow()

    valid = sorted(
        (d for d in discounts if is_discount_valid(d, now)),
        key=lambda d: (d.id is None, d.id or 0),
    )
    if not valid:
        return PricingResult(final_price=base_price)

    best = None
    best_price = base_price
    best_savings = ZERO
    for discount in valid:
        candidate = discounted_price(base_price, discount)
        savings = base_price - candidate
        if savings > best_savings:
            best, best_price, best_savings = discount, candidate, savings

    if best is None:
        return PricingResult(final_price=base_price)

    return PricingResult(
        final_price=best_price,
        applied_discounts=[
            {
                "id": best.id,
                "name": best.name,
                "discount_type": best.discount_type,
                "value": best.value,
            }
        ],
    )


class PricingEngine:
    """Loads the discounts linked to products and resolves their prices."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_price_for_product(self, *, product: models.Product) -> PricingResult:
        links = await crud_product_discount.find_by_product(self.db, product_id=product.id)
        if not links:
            return PricingResult(final_price=_money(product.base_price))

        discounts = await crud_discount.discount.get_many(self.db, [link.discount_id for link in links])
        return resolve_price(product.base_price, discounts)

    async def get_prices_for_products(
        self, *, products: Sequence[models.Product]
    ) -> Dict[int, PricingResult]:
        """
        Prices a batch of products with two queries: one for all their
        links, one for every discount those links reference.
        """
        if not products:
            return {}

        links_by_product = await crud_product_discount.find_by_products(
            self.db, product_ids=[p.id for p in products]
        )
        discount_ids = {link.discount_id for links in links_by_product.values() for link in links}
        discounts = {
            d.id: d for d in await crud_discount.discount.get_many(self.db, sorted(discount_ids))
        }

        now = utcnow()
        prices = {}
        for product in products:
            # links whose discount no longer exists resolve to None and are skipped
            linked = [discounts.get(link.discount_id) for link in links_by_product.get(product.id, [])]
            prices[product.id] = resolve_price(product.base_price, linked, now)
        return prices
