"""
Foundation API Backend — Products Route Handlers
==================================================

What:  Example CRUD resource showing the request pipeline end to end:
       query/body validation → session auth → service → ErrorResponse on failure.
How:   Thin handlers delegating to ProductService.

Access:
    GET    /products          anonymous
    GET    /products/mine     signed in (caller's products only)
    GET    /products/{id}     anonymous or signed in (is_owner reported)
    POST / PUT / PATCH / DELETE  signed in
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.dependencies.auth import optional_session, require_session
from app.models.auth import UserEntity
from app.schemas.error import ErrorResponse
from app.schemas.product import (
    CreateProduct,
    ProductCategory,
    ProductDetailResponse,
    ProductListResponse,
    ProductMutationResponse,
    ProductQuery,
    ProductStatus,
    SortField,
    UpdateProduct,
)
from app.services.product_service import product_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

_VALIDATION = {400: {"description": "Validation failed", "model": ErrorResponse}}
_AUTH = {401: {"description": "Unauthorized", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Product not found", "model": ErrorResponse}}

_IN_STOCK = {"true": True, "false": False}


def product_query(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100, description="Items per page (max 100)"),
    category: Optional[ProductCategory] = Query(default=None),
    status: Optional[ProductStatus] = Query(default=None),
    min_price: Optional[float] = Query(default=None, gt=0),
    max_price: Optional[float] = Query(default=None, gt=0),
    in_stock: Optional[Literal["true", "false"]] = Query(
        default=None, description='Exactly "true" or "false"'
    ),
    search: Optional[str] = Query(
        default=None, min_length=1, max_length=100,
        description="Case-insensitive match on name or description",
    ),
    sort_by: SortField = Query(default="created_at"),
    sort_order: Literal["asc", "desc"] = Query(default="desc"),
) -> ProductQuery:
    return ProductQuery(
        page=page,
        limit=limit,
        category=category,
        status=status,
        min_price=min_price,
        max_price=max_price,
        in_stock=_IN_STOCK[in_stock] if in_stock is not None else None,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post(
    "",
    response_model=ProductMutationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_VALIDATION, **_AUTH},
    summary="Create a new product (requires authentication)",
)
async def create_product(
    payload: CreateProduct,
    user: UserEntity = Depends(require_session),
) -> ProductMutationResponse:
    product = product_service.create(payload, str(user.id))
    return ProductMutationResponse(message="Product created successfully", product=product)


@router.get(
    "",
    response_model=ProductListResponse,
    responses=_VALIDATION,
    summary="Get all products with filtering, sorting, and pagination",
)
async def list_products(query: ProductQuery = Depends(product_query)) -> ProductListResponse:
    return product_service.find_all(query)


@router.get(
    "/mine",
    response_model=ProductListResponse,
    responses={**_VALIDATION, **_AUTH},
    summary="Get current user products (protected route)",
)
async def list_my_products(
    query: ProductQuery = Depends(product_query),
    user: UserEntity = Depends(require_session),
) -> ProductListResponse:
    return product_service.find_all(query, owner_id=str(user.id))


@router.get(
    "/{product_id}",
    response_model=ProductDetailResponse,
    responses=_NOT_FOUND,
    summary="Get a product by ID (optional authentication)",
)
async def get_product(
    product_id: str,
    user: Optional[UserEntity] = Depends(optional_session),
) -> ProductDetailResponse:
    product = product_service.find_one(product_id)
    is_owner = user is not None and product.created_by == str(user.id)
    return ProductDetailResponse(product=product, is_owner=is_owner)


@router.put(
    "/{product_id}",
    response_model=ProductMutationResponse,
    responses={**_VALIDATION, **_AUTH, **_NOT_FOUND},
    summary="Update a product (full update)",
)
async def update_product(
    product_id: str,
    payload: CreateProduct,
    user: UserEntity = Depends(require_session),
) -> ProductMutationResponse:
    product = product_service.update(product_id, payload)
    return ProductMutationResponse(message="Product updated successfully", product=product)


@router.patch(
    "/{product_id}",
    response_model=ProductMutationResponse,
    responses={**_VALIDATION, **_AUTH, **_NOT_FOUND},
    summary="Partially update a product",
)
async def patch_product(
    product_id: str,
    payload: UpdateProduct,
    user: UserEntity = Depends(require_session),
) -> ProductMutationResponse:
    product = product_service.patch(product_id, payload)
    return ProductMutationResponse(
        message="Product partially updated successfully", product=product
    )


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**_AUTH, **_NOT_FOUND},
    summary="Delete a product",
)
async def delete_product(
    product_id: str,
    user: UserEntity = Depends(require_session),
) -> Response:
    product_service.remove(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
