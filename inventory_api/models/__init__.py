from inventory_api.models.lifecycle import RecordStatus
from inventory_api.models.category import Category
from inventory_api.models.user import User, UserRole
from inventory_api.models.product import Product
from inventory_api.models.product_image import ProductImage
from inventory_api.models.purchase import Purchase, PurchaseDetail, PurchaseStatus

__all__ = [
    "RecordStatus",
    "Category",
    "User",
    "UserRole",
    "Product",
    "ProductImage",
    "Purchase",
    "PurchaseDetail",
    "PurchaseStatus",
]
