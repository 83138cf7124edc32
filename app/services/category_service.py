from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models, schemas
from ..core.exceptions import ConflictError, NotFoundError, ValidationFailed
from ..crud import crud_category, crud_product
from ..validation import validate_category


class CategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_category(self, category_id: int) -> models.Category:
        category = await crud_category.category.get(self.db, category_id)
        if category is None:
            raise NotFoundError(f"Category with id {category_id} not found")
        return category

    async def get_by_slug(self, slug: str) -> models.Category:
        category = await crud_category.get_by_slug(self.db, slug=slug)
        if category is None:
            raise NotFoundError(f"Category with slug {slug} not found")
        return category

    async def list_categories(
        self, *, page: int, limit: int, sort_by: str | None = None, sort_order: str = "desc"
    ) -> schemas.Page[schemas.Category]:
        categories, total = await crud_category.category.paginate(
            self.db, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
        )
        return schemas.Page[schemas.Category](
            data=[schemas.Category.model_validate(c) for c in categories],
            meta=schemas.PageMeta.build(page=page, limit=limit, total=total),
        )

    async def list_active(self) -> List[models.Category]:
        return await crud_category.get_active(self.db)

    async def _assert_unique(self, *, name: str | None, slug: str | None, exclude_id: int | None = None):
        if name:
            existing = await crud_category.get_by_name(self.db, name=name)
            if existing and existing.id != exclude_id:
                raise ConflictError(f"Category with name '{name}' already exists")
        if slug:
            existing = await crud_category.get_by_slug(self.db, slug=slug)
            if existing and existing.id != exclude_id:
                raise ConflictError(f"Category with slug '{slug}' already exists")

    async def create_category(self, category_in: schemas.CategoryCreate) -> models.Category:
        errors = validate_category(name=category_in.name, slug=category_in.slug)
        if errors:
            raise ValidationFailed(errors)
        await self._assert_unique(name=category_in.name, slug=category_in.slug)

        data = category_in.model_dump()
        data["slug"] = category_in.slug.strip().lower()
        category = await crud_category.category.create(self.db, obj_in=data)
        await self.db.commit()
        return category

    async def update_category(self, category_id: int, category_in: schemas.CategoryUpdate) -> models.Category:
        category = await self.get_category(category_id)
        update_data = category_in.model_dump(exclude_unset=True)
        if update_data.get("slug"):
            update_data["slug"] = update_data["slug"].strip().lower()

        errors = validate_category(
            name=update_data.get("name", category.name),
            slug=update_data.get("slug", category.slug),
        )
        if errors:
            raise ValidationFailed(errors)
        await self._assert_unique(
            name=update_data.get("name"), slug=update_data.get("slug"), exclude_id=category_id
        )

        category = await crud_category.category.update(self.db, db_obj=category, obj_in=update_data)
        await self.db.commit()
        return category

    async def delete_category(self, category_id: int) -> None:
        category = await self.get_category(category_id)
        if await crud_product.product.count(self.db, category_id=category_id):
            raise ConflictError("Category still has products and cannot be deleted")
        await crud_category.category.remove(self.db, db_obj=category)
        await self.db.commit()
