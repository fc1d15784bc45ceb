from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import List

from inventory_api.models.purchase import PurchaseStatus


class PurchaseItem(BaseModel):
    """One requested line item."""
    product_id: int = Field(..., description="ID of the product to purchase")
    quantity: int = Field(..., gt=0, description="Units to purchase")


class PurchaseCreate(BaseModel):
    """Schema for creating a purchase."""
    items: List[PurchaseItem] = Field(..., min_length=1, description="At least one line item")


class PurchasedProduct(BaseModel):
    """Product info nested in a purchase line."""
    id: int
    batch_number: str
    name: str
    price: Decimal

    model_config = ConfigDict(from_attributes=True)


class PurchaseDetailResponse(BaseModel):
    """Schema for a purchase line item."""
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    product: PurchasedProduct

    model_config = ConfigDict(from_attributes=True)


class PurchaseResponse(BaseModel):
    """Schema for purchase response with nested line items."""
    id: int
    user_id: int
    total_amount: Decimal
    purchase_date: datetime
    status: PurchaseStatus
    details: List[PurchaseDetailResponse]

    model_config = ConfigDict(from_attributes=True)


class PurchaseListResponse(BaseModel):
    """Schema for paginated purchase list response."""
    items: List[PurchaseResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
