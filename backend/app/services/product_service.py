"""
Foundation API Backend — Product Service
==========================================

What:  In-memory product catalogue backing the /products example routes.
How:   A process-lifetime list of Product models with string IDs from a
       counter. Filtering, sorting and pagination run in Python.
Who:   Called by app.routes.products.

Not persisted: restarting the process empties the catalogue. The resource
exists to exercise validation, auth and error handling end to end.
"""

import logging
import math
from typing import List, Optional

from app.exceptions import NotFoundError
from app.models.base import utcnow
from app.schemas.product import (
    CreateProduct,
    Pagination,
    Product,
    ProductListResponse,
    ProductQuery,
    UpdateProduct,
)

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self) -> None:
        self._products: List[Product] = []
        self._next_id = 1

    def create(self, data: CreateProduct, user_id: str) -> Product:
        now = utcnow()
        product = Product(
            **data.model_dump(),
            id=str(self._next_id),
            created_by=user_id,
            created_at=now,
            updated_at=now,
        )
        self._next_id += 1
        self._products.append(product)
        logger.info("Product %s created by %s", product.id, user_id)
        return product

    def find_all(self, query: ProductQuery, owner_id: Optional[str] = None) -> ProductListResponse:
        """
        Filters → sorts → paginates. `owner_id` restricts the result to one
        creator (GET /products/mine).
        """
        products = list(self._products)
        if owner_id is not None:
            products = [p for p in products if p.created_by == owner_id]

        if query.category:
            products = [p for p in products if p.category == query.category]
        if query.status:
            products = [p for p in products if p.status == query.status]
        if query.min_price is not None:
            products = [p for p in products if p.price >= query.min_price]
        if query.max_price is not None:
            products = [p for p in products if p.price <= query.max_price]
        if query.in_stock is not None:
            products = [p for p in products if p.in_stock == query.in_stock]
        if query.search:
            needle = query.search.lower()
            products = [
                p
                for p in products
                if needle in p.name.lower() or (p.description and needle in p.description.lower())
            ]

        products.sort(
            key=lambda p: getattr(p, query.sort_by),
            reverse=query.sort_order == "desc",
        )

        total = len(products)
        start = (query.page - 1) * query.limit
        return ProductListResponse(
            data=products[start : start + query.limit],
            pagination=Pagination(
                page=query.page,
                limit=query.limit,
                total=total,
                total_pages=math.ceil(total / query.limit),
            ),
        )

    def find_one(self, product_id: str) -> Product:
        for product in self._products:
            if product.id == product_id:
                return product
        raise NotFoundError(
            resource="Product",
            resource_id=product_id,
            message=f"Product with ID {product_id} not found",
        )

    def _replace(self, product: Product, changes: dict) -> Product:
        updated = Product.model_validate(
            {**product.model_dump(), **changes, "updated_at": utcnow()}
        )
        index = next(i for i, p in enumerate(self._products) if p.id == product.id)
        self._products[index] = updated
        return updated

    def update(self, product_id: str, data: CreateProduct) -> Product:
        """Full update: every field takes the request's value (or its default)."""
        return self._replace(self.find_one(product_id), data.model_dump())

    def patch(self, product_id: str, data: UpdateProduct) -> Product:
        """Partial update: only fields present in the request change."""
        return self._replace(self.find_one(product_id), data.model_dump(exclude_unset=True))

    def remove(self, product_id: str) -> None:
        product = self.find_one(product_id)
        self._products.remove(product)
        logger.info("Product %s deleted", product_id)

    def clear(self) -> None:
        self._products.clear()
        self._next_id = 1


product_service = ProductService()
