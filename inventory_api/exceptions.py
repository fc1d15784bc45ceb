class InventoryError(Exception):
    """Base class for business-rule and persistence failures raised by services."""
    pass


class ProductNotFoundError(InventoryError):
    """Exception raised when a product doesn't exist or has been retired."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product with ID {product_id} not found")


class InsufficientStockError(InventoryError):
    """Exception raised when there's not enough stock to fulfill a line item."""
    pass


class ImageNotFoundError(InventoryError):
    """Exception raised when an image doesn't belong to the given product."""

    def __init__(self, image_id: int, product_id: int):
        self.image_id = image_id
        self.product_id = product_id
        super().__init__(f"Image with ID {image_id} not found for product {product_id}")


class CategoryInactiveError(InventoryError):
    """Exception raised when a referenced category is missing or retired."""

    def __init__(self, category_id: int):
        self.category_id = category_id
        super().__init__(f"Category with ID {category_id} not found or inactive")


class DuplicateRecordError(InventoryError):
    """Exception raised when a unique field (email, batch number) is already taken."""
    pass


class PersistenceError(InventoryError):
    """Exception raised when a transaction fails to commit and was rolled back."""
    pass
