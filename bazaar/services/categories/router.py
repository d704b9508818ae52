"""Categories API Router"""
from fastapi import APIRouter, Depends, Query

from bazaar.auth import TokenPayload, require_admin
from bazaar.models import CategoryCreate, CategoryUpdate
from bazaar.services.app import ok

from .service import CategoryService, get_category_service

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories(
    include_inactive: bool = Query(False, alias="includeInactive"),
    service: CategoryService = Depends(get_category_service),
):
    categories = await service.list_categories(include_inactive)
    return ok(categories, count=len(categories))


@router.get("/{id_or_slug}")
async def get_category(id_or_slug: str, service: CategoryService = Depends(get_category_service)):
    return ok(await service.get_category(id_or_slug))


@router.post("", status_code=201)
async def create_category(
    payload: CategoryCreate,
    admin: TokenPayload = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    category = await service.create_category(payload)
    return ok(category.to_api(), "Category created successfully")


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    admin: TokenPayload = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    category = await service.update_category(category_id, payload)
    return ok(category.to_api(), "Category updated successfully")


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    admin: TokenPayload = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    await service.delete_category(category_id)
    return ok(message="Category deleted successfully")
