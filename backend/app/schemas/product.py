"""
Foundation API Backend — Product Schemas
==========================================

What:  Request, query and response models for the /products example resource.
Who:   Used by app.routes.products and app.services.product_service.

Request models:
    CreateProduct  POST and PUT (full replacement). Defaults apply and the
                   in_stock / stock_quantity rules are enforced.
    UpdateProduct  PATCH. Every field optional, no defaults, so an omitted
                   field never overwrites the stored value.

Stock rules (reported on `stock_quantity`):
    in_stock = true   → stock_quantity must be present and >= 1
    in_stock = false  → stock_quantity, when present, must be 0
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, HttpUrl, StringConstraints, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

Currency = Literal["USD", "EUR", "RUB"]
ProductCategory = Literal["electronics", "clothing", "food", "books", "toys", "other"]
ProductStatus = Literal["draft", "active", "archived", "out_of_stock"]
SortField = Literal["name", "price", "created_at", "updated_at"]

NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]
Tag = Annotated[str, StringConstraints(min_length=1, max_length=50)]
# Validated as an http(s) URL, stored as the plain string
UrlString = Annotated[HttpUrl, AfterValidator(str)]


class ProductDimensions(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    depth: float = Field(gt=0)


class ProductMetadata(BaseModel):
    brand: Optional[NonEmptyStr] = None
    manufacturer: Optional[NonEmptyStr] = None
    sku: Optional[NonEmptyStr] = None
    barcode: Optional[NonEmptyStr] = None
    weight: Optional[float] = Field(default=None, gt=0)
    dimensions: Optional[ProductDimensions] = None


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ProductFields(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10, max_length=5000)
    price: float = Field(gt=0, le=999999.99)
    currency: Currency = "USD"
    category: ProductCategory
    status: ProductStatus = "draft"
    in_stock: bool = True
    stock_quantity: Optional[int] = Field(default=None, ge=0, validate_default=True)
    tags: Optional[List[Tag]] = Field(default=None, max_length=10)
    image_url: Optional[UrlString] = None
    discount_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    metadata: Optional[ProductMetadata] = None
    published_at: Optional[datetime] = None


class CreateProduct(ProductFields):
    @field_validator("stock_quantity")
    @classmethod
    def check_stock_quantity(cls, v: Optional[int], info: ValidationInfo) -> Optional[int]:
        in_stock = info.data.get("in_stock")
        if in_stock is True and (v is None or v < 1):
            raise PydanticCustomError(
                "stock_quantity_required",
                "When in_stock is true, stock_quantity must be provided and must be at least 1",
            )
        if in_stock is False and v is not None and v != 0:
            raise PydanticCustomError(
                "stock_quantity_not_zero",
                "When in_stock is false, stock_quantity must be 0",
            )
        return v


class UpdateProduct(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10, max_length=5000)
    price: Optional[float] = Field(default=None, gt=0, le=999999.99)
    currency: Optional[Currency] = None
    category: Optional[ProductCategory] = None
    status: Optional[ProductStatus] = None
    in_stock: Optional[bool] = None
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    tags: Optional[List[Tag]] = Field(default=None, max_length=10)
    image_url: Optional[UrlString] = None
    discount_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    metadata: Optional[ProductMetadata] = None
    published_at: Optional[datetime] = None

    # None is only the "not provided" marker; required fields cannot be cleared
    @field_validator("name", "price", "currency", "category", "status", "in_stock")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise PydanticCustomError("null_not_allowed", "Field cannot be null")
        return v


class ProductQuery(BaseModel):
    """Validated query string of GET /products and GET /products/mine."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    category: Optional[ProductCategory] = None
    status: Optional[ProductStatus] = None
    min_price: Optional[float] = Field(default=None, gt=0)
    max_price: Optional[float] = Field(default=None, gt=0)
    # Only the literal strings "true" / "false" are accepted
    in_stock: Optional[bool] = None
    search: Optional[str] = Field(default=None, min_length=1, max_length=100)
    sort_by: SortField = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class Product(ProductFields):
    id: str = Field(description="Sequential identifier assigned on creation")
    created_by: str = Field(description="ID of the user who created the product")
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ProductListResponse(BaseModel):
    data: List[Product]
    pagination: Pagination


class ProductMutationResponse(BaseModel):
    message: str
    product: Product


class ProductDetailResponse(BaseModel):
    product: Product
    is_owner: bool
