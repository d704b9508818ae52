"""
Products API Router

Public catalog reads; seller/admin writes.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from bazaar.auth import TokenPayload, require_seller_or_admin
from bazaar.listing import ProductQuery
from bazaar.models import ProductCreate, ProductUpdate
from bazaar.services.app import ok

from .service import ProductService, get_product_service

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
async def list_products(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    seller_id: Optional[str] = Query(None, alias="sellerId"),
    featured: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    include_inactive: Optional[str] = Query(None, alias="includeInactive"),
    service: ProductService = Depends(get_product_service),
):
    """
    List products.

    Numeric parameters are parsed leniently: anything unparseable falls back
    to its default instead of failing the request.
    """
    query = ProductQuery.from_params(
        page=page,
        limit=limit,
        search=search,
        category=category,
        seller_id=seller_id,
        featured=featured,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_order=sort_order,
        include_inactive=include_inactive,
    )
    result = await service.list_products(query)
    return ok(result["data"], fromCache=result["from_cache"])


@router.get("/seller/{seller_id}")
async def get_seller_products(
    seller_id: str,
    service: ProductService = Depends(get_product_service),
):
    return ok(await service.get_seller_products(seller_id))


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    result = await service.get_product(product_id)
    return ok(result["data"], fromCache=result["from_cache"])


@router.post("", status_code=201)
async def create_product(
    payload: ProductCreate,
    user: TokenPayload = Depends(require_seller_or_admin),
    service: ProductService = Depends(get_product_service),
):
    product = await service.create_product(payload, user)
    return ok({"product": product.to_api()}, "Product created successfully")


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    user: TokenPayload = Depends(require_seller_or_admin),
    service: ProductService = Depends(get_product_service),
):
    product = await service.update_product(product_id, payload, user)
    return ok({"product": product.to_api()}, "Product updated successfully")


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    user: TokenPayload = Depends(require_seller_or_admin),
    service: ProductService = Depends(get_product_service),
):
    await service.delete_product(product_id, user)
    return ok(message="Product deleted successfully")
