# app/services/catalog_service.py

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models, schemas
from ..core.exceptions import ConflictError, NotFoundError, ValidationFailed
from ..crud import crud_category, crud_product, crud_product_discount
from ..validation import reject_nulls, validate_product, validate_product_item
from .pricing_engine import PricingEngine, PricingResult

logger = logging.getLogger(__name__)


def to_product_schema(product: models.Product, pricing: PricingResult | None = None) -> schemas.Product:
    data = schemas.Product(
        id=product.id,
        name=product.name,
        slug=product.slug,
        description=product.description,
        base_price=product.base_price,
        category_id=product.category_id,
        sku=product.sku,
        images=product.images or [],
        is_active=product.is_active,
        metadata=product.extra_data,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )
    if pricing is not None and pricing.has_discount:
        data.final_price = pricing.final_price
        data.applied_discounts = [schemas.AppliedDiscount(**d) for d in pricing.applied_discounts]
    return data


class ProductService:
    """Product catalog: admin writes, and priced reads for everyone."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.pricing_engine = PricingEngine(db)

    # --- Reads (always priced) ---

    async def _priced(self, product: models.Product) -> schemas.Product:
        pricing = await self.pricing_engine.get_price_for_product(product=product)
        return to_product_schema(product, pricing)

    async def _priced_many(self, products: List[models.Product]) -> List[schemas.Product]:
        prices = await self.pricing_engine.get_prices_for_products(products=products)
        return [to_product_schema(p, prices.get(p.id)) for p in products]

    async def get_product(self, product_id: int) -> schemas.Product:
        product = await crud_product.product.get(self.db, product_id)
        if product is None:
            raise NotFoundError(f"Product with id {product_id} not found")
        return await self._priced(product)

    async def get_product_by_slug(self, slug: str) -> schemas.Product:
        product = await crud_product.get_by_slug(self.db, slug=slug)
        if product is None:
            raise NotFoundError(f"Product with slug {slug} not found")
        return await self._priced(product)

    async def list_products(
        self, *, page: int, limit: int, sort_by: str | None = None, sort_order: str = "desc"
    ) -> schemas.Page[schemas.Product]:
        products, total = await crud_product.product.paginate(
            self.db, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order, is_active=True
        )
        return schemas.Page[schemas.Product](
            data=await self._priced_many(products),
            meta=schemas.PageMeta.build(page=page, limit=limit, total=total),
        )

    async def search_products(self, *, term: str, page: int, limit: int) -> schemas.Page[schemas.Product]:
        products, total = await crud_product.search(self.db, term=term, page=page, limit=limit)
        return schemas.Page[schemas.Product](
            data=await self._priced_many(products),
            meta=schemas.PageMeta.build(page=page, limit=limit, total=total),
        )

    async def get_products_by_category(self, category_id: int) -> List[schemas.Product]:
        products = await crud_product.get_by_category(self.db, category_id=category_id)
        return await self._priced_many(products)

    # --- Admin writes ---

    async def _require(self, product_id: int) -> models.Product:
        product = await crud_product.product.get(self.db, product_id)
        if product is None:
            raise NotFoundError(f"Product with id {product_id} not found")
        return product

    async def _require_category(self, category_id: int):
        if await crud_category.category.get(self.db, category_id) is None:
            raise NotFoundError(f"Category with id {category_id} not found")

    async def create_product(self, product_in: schemas.ProductCreate) -> schemas.Product:
        errors = validate_product(
            name=product_in.name, slug=product_in.slug, sku=product_in.sku, base_price=product_in.base_price
        )
        if errors:
            raise ValidationFailed(errors)

        if await crud_product.get_by_sku(self.db, sku=product_in.sku):
            raise ConflictError("Product with this SKU already exists")
        if await crud_product.get_by_slug(self.db, slug=product_in.slug):
            raise ConflictError("Product with this slug already exists")
        await self._require_category(product_in.category_id)

        data = product_in.model_dump(exclude={"metadata"})
        data.update(
            slug=product_in.slug.strip().lower(),
            sku=product_in.sku.strip().upper(),
            extra_data=product_in.metadata,
        )
        product = await crud_product.product.create(self.db, obj_in=data)
        await self.db.commit()
        logger.info("Created product %s (%s)", product.id, product.sku)
        return to_product_schema(product)

    async def update_product(self, product_id: int, product_in: schemas.ProductUpdate) -> schemas.Product:
        product = await self._require(product_id)
        update_data = product_in.model_dump(exclude_unset=True)
        errors = reject_nulls(
            update_data, ("name", "slug", "description", "base_price", "category_id", "sku", "images", "is_active")
        )
        if errors:
            raise ValidationFailed(errors)

        if update_data.get("slug"):
            update_data["slug"] = update_data["slug"].strip().lower()
            existing = await crud_product.get_by_slug(self.db, slug=update_data["slug"])
            if existing and existing.id != product_id:
                raise ConflictError("Product with this slug already exists")
        if update_data.get("sku"):
            update_data["sku"] = update_data["sku"].strip().upper()
            existing = await crud_product.get_by_sku(self.db, sku=update_data["sku"])
            if existing and existing.id != product_id:
                raise ConflictError("Product with this SKU already exists")
        if update_data.get("category_id") is not None:
            await self._require_category(update_data["category_id"])

        errors = validate_product(
            name=update_data.get("name", product.name),
            slug=update_data.get("slug", product.slug),
            sku=update_data.get("sku", product.sku),
            base_price=update_data.get("base_price", product.base_price),
        )
        if errors:
            raise ValidationFailed(errors)

        if "metadata" in update_data:
            update_data["extra_data"] = update_data.pop("metadata")
        product = await crud_product.product.update(self.db, db_obj=product, obj_in=update_data)
        await self.db.commit()
        return to_product_schema(product)

    async def delete_product(self, product_id: int) -> None:
        """Deletes the product together with its items and discount links."""
        product = await self._require(product_id)
        pruned = await crud_product_discount.delete_by_product(self.db, product_id=product_id)
        await crud_product.delete_items(self.db, product_id=product_id)
        await crud_product.product.remove(self.db, db_obj=product)
        await self.db.commit()
        logger.info("Deleted product %s and %d discount link(s)", product_id, pruned)

    # --- Product items ---

    async def add_item(self, product_id: int, item_in: schemas.ProductItemCreate) -> models.ProductItem:
        await self._require(product_id)
        errors = validate_product_item(
            sku=item_in.sku, price=item_in.price, quantity_in_stock=item_in.quantity_in_stock
        )
        if errors:
            raise ValidationFailed(errors)
        if await crud_product.get_item_by_sku(self.db, sku=item_in.sku):
            raise ConflictError("Product item with this SKU already exists")

        data = item_in.model_dump()
        data.update(product_id=product_id, sku=item_in.sku.strip().upper())
        item = await crud_product.product_item.create(self.db, obj_in=data)
        await self.db.commit()
        return item

    async def list_items(self, product_id: int) -> List[models.ProductItem]:
        await self._require(product_id)
        return await crud_product.get_items(self.db, product_id=product_id)
