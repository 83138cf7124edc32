# app/services/discount_service.py

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models, schemas
from ..core.exceptions import ConflictError, NotFoundError, ValidationFailed
from ..crud import crud_discount, crud_product, crud_product_discount
from ..validation import reject_nulls, validate_discount

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "discount_type", "value", "start_date", "end_date", "is_active")


class DiscountService:
    """Admin management of discounts and of their links to products."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_discount(self, discount_id: int) -> models.Discount:
        discount = await crud_discount.discount.get(self.db, discount_id)
        if discount is None:
            raise NotFoundError(f"Discount with id {discount_id} not found")
        return discount

    async def get_by_code(self, code: str) -> models.Discount:
        discount = await crud_discount.get_by_code(self.db, code=code)
        if discount is None:
            raise NotFoundError(f"Discount with code {code} not found")
        return discount

    async def list_discounts(
        self, *, page: int, limit: int, sort_by: str | None = None, sort_order: str = "desc"
    ) -> schemas.Page[schemas.Discount]:
        discounts, total = await crud_discount.discount.paginate(
            self.db, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
        )
        return schemas.Page[schemas.Discount](
            data=[schemas.Discount.model_validate(d) for d in discounts],
            meta=schemas.PageMeta.build(page=page, limit=limit, total=total),
        )

    async def list_active(self) -> List[models.Discount]:
        return await crud_discount.get_active(self.db)

    async def _assert_code_free(self, code: str, exclude_id: int | None = None):
        existing = await crud_discount.get_by_code(self.db, code=code)
        if existing and existing.id != exclude_id:
            raise ConflictError("Discount with this code already exists")

    async def create_discount(self, discount_in: schemas.DiscountCreate) -> models.Discount:
        """
        Validates and stores a new discount. Nothing is written when the
        date window or any value is invalid.
        """
        errors = validate_discount(
            name=discount_in.name,
            discount_type=discount_in.discount_type,
            value=discount_in.value,
            start_date=discount_in.start_date,
            end_date=discount_in.end_date,
            minimum_order_value=discount_in.minimum_order_value,
            minimum_quantity=discount_in.minimum_quantity,
            max_usage_count=discount_in.max_usage_count,
        )
        if errors:
            raise ValidationFailed(errors)

        data = discount_in.model_dump()
        data["code"] = (discount_in.code or "").strip().upper() or None
        if data["code"]:
            await self._assert_code_free(data["code"])

        discount = await crud_discount.discount.create(self.db, obj_in=data)
        await self.db.commit()
        logger.info("Created discount %s (%s)", discount.id, discount.name)
        return discount

    async def update_discount(self, discount_id: int, discount_in: schemas.DiscountUpdate) -> models.Discount:
        discount = await self.get_discount(discount_id)
        update_data = discount_in.model_dump(exclude_unset=True)
        errors = reject_nulls(update_data, REQUIRED_FIELDS)
        if errors:
            raise ValidationFailed(errors)

        if "code" in update_data:
            update_data["code"] = (update_data["code"] or "").strip().upper() or None
            if update_data["code"]:
                await self._assert_code_free(update_data["code"], exclude_id=discount_id)

        def merged(name):
            return update_data[name] if name in update_data else getattr(discount, name)

        errors = validate_discount(
            name=merged("name"),
            discount_type=merged("discount_type"),
            value=merged("value"),
            start_date=merged("start_date"),
            end_date=merged("end_date"),
            minimum_order_value=merged("minimum_order_value"),
            minimum_quantity=merged("minimum_quantity"),
            max_usage_count=merged("max_usage_count"),
        )
        if errors:
            raise ValidationFailed(errors)

        discount = await crud_discount.discount.update(self.db, db_obj=discount, obj_in=update_data)
        await self.db.commit()
        return discount

    async def delete_discount(self, discount_id: int) -> None:
        """Deletes the discount and every link pointing at it."""
        discount = await self.get_discount(discount_id)
        pruned = await crud_product_discount.delete_by_discount(self.db, discount_id=discount_id)
        await crud_discount.discount.remove(self.db, db_obj=discount)
        await self.db.commit()
        logger.info("Deleted discount %s and %d product link(s)", discount_id, pruned)

    # --- Links ---

    async def link_to_product(self, link_in: schemas.LinkDiscountRequest) -> models.ProductDiscount:
        await self.get_discount(link_in.discount_id)
        if await crud_product.product.get(self.db, link_in.product_id) is None:
            raise NotFoundError(f"Product with id {link_in.product_id} not found")
        if link_in.product_item_id is not None:
            item = await crud_product.product_item.get(self.db, link_in.product_item_id)
            if item is None or item.product_id != link_in.product_id:
                raise NotFoundError(
                    f"Product item with id {link_in.product_item_id} not found for product {link_in.product_id}"
                )

        if await crud_product_discount.get_link(
            self.db, product_id=link_in.product_id, discount_id=link_in.discount_id
        ):
            raise ConflictError("Discount is already linked to this product")

        link = await crud_product_discount.link(
            self.db,
            product_id=link_in.product_id,
            discount_id=link_in.discount_id,
            product_item_id=link_in.product_item_id,
        )
        await self.db.commit()
        return link

    async def unlink_from_product(self, product_id: int, discount_id: int) -> None:
        unlinked = await crud_product_discount.unlink(self.db, product_id=product_id, discount_id=discount_id)
        if not unlinked:
            raise NotFoundError("Product-discount link not found")
        await self.db.commit()

    async def get_links_for_discount(self, discount_id: int) -> List[models.ProductDiscount]:
        await self.get_discount(discount_id)
        return await crud_product_discount.find_by_discount(self.db, discount_id=discount_id)

    async def get_links_for_product_item(self, product_item_id: int) -> List[models.ProductDiscount]:
        return await crud_product_discount.find_by_product_item(self.db, product_item_id=product_item_id)
