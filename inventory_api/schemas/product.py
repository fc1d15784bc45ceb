from pydantic import BaseModel, Field, ConfigDict
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Set, Union
import json

from inventory_api.models.lifecycle import RecordStatus
from inventory_api.schemas.category import CategoryResponse


class ProductBase(BaseModel):
    """Base schema for Product with common attributes."""
    batch_number: str = Field(..., min_length=1, max_length=50, description="Unique batch code")
    name: str = Field(..., min_length=1, max_length=100, description="Product name")
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Unit price (must be positive)")
    available_quantity: int = Field(..., ge=0, description="Available stock (must be non-negative)")
    entry_date: date = Field(..., description="Date the batch entered stock")
    category_id: Optional[int] = Field(None, description="Optional category reference")


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    pass


class ProductUpdate(BaseModel):
    """Schema for updating an existing product. All fields are optional."""
    batch_number: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    available_quantity: Optional[int] = Field(None, ge=0)
    entry_date: Optional[date] = None
    category_id: Optional[int] = None


class ImageData(BaseModel):
    """Metadata of an uploaded file, already written to the upload directory."""
    filename: str
    original_name: str
    mimetype: str
    size: int = Field(..., ge=0)
    is_main_image: bool = False


class ProductImageResponse(BaseModel):
    """Schema for product image response."""
    id: int
    product_id: int
    filename: str
    original_name: str
    mimetype: str
    size: int
    is_main_image: bool
    url: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: int
    status: RecordStatus
    category: Optional[CategoryResponse] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductDetailResponse(ProductResponse):
    """Schema for product response with its images, main image first."""
    images: List[ProductImageResponse] = []


class ProductListResponse(BaseModel):
    """Schema for paginated product list response."""
    items: List[Union[ProductDetailResponse, ProductResponse]]
    total: int
    page: int
    limit: int
    total_pages: int


def parse_image_ids(raw: Union[str, List, None]) -> Set[int]:
    """
    Normalise an image id list sent as a JSON array, a comma separated
    string or a list of values into a set of ints. Non-numeric entries are
    ignored.
    """
    if raw is None or raw == "":
        return set()

    values = raw
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            try:
                values = json.loads(text)
            except json.JSONDecodeError:
                values = text.strip("[]").split(",")
        else:
            values = text.split(",")

    if not isinstance(values, (list, tuple, set)):
        values = [values]

    ids = set()
    for value in values:
        try:
            ids.add(int(str(value).strip()))
        except ValueError:
            continue
    return ids
